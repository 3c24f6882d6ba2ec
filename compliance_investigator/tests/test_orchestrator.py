import os
from unittest.mock import MagicMock

from compliance_investigator.agent.orchestrator import Orchestrator
from compliance_investigator.agent.state_machine import not_found_report
from compliance_investigator.errors import LoginError
from compliance_investigator.parser.snapshot import SnapshotPageContext

NAMELESS_PROFILE_HTML = '<html><body><div><span>DOB</span><span>1970-07-01</span></div></body></html>'


class FakePortal:
    def __init__(self, html='', found=True, login_error=None):
        self.html = html
        self.found = found
        self.login_error = login_error
        self.screenshots = []
        self.searched = []
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True

    def login(self):
        if self.login_error:
            raise self.login_error

    def search_customer(self, customer_name):
        self.searched.append(customer_name)
        return self.found

    def capture_screenshot(self, name):
        self.screenshots.append(name)

    def page_context(self):
        return SnapshotPageContext(self.html)


def stub_researcher():
    researcher = MagicMock()
    researcher.research.side_effect = lambda record: not_found_report(record.personal.name, 'stubbed research')
    return researcher


def test_not_found_writes_report_without_research(tmp_path):
    portal = FakePortal(found=False)
    researcher = stub_researcher()
    result = Orchestrator(lambda: portal, researcher, str(tmp_path)).investigate('Ghost')

    assert result.success
    researcher.research.assert_not_called()
    assert portal.searched == ['Ghost']
    assert portal.closed
    assert 'Customer "Ghost" not found in ComplianceOS' in result.report.executive_summary
    assert os.path.exists(result.report_path)
    assert os.path.basename(result.report_path).startswith('compliance_report_ghost_')


def test_found_customer_is_researched(tmp_path, profile_html):
    portal = FakePortal(html=profile_html)
    researcher = stub_researcher()
    result = Orchestrator(lambda: portal, researcher, str(tmp_path)).investigate('Jane Doe')

    assert result.success
    researcher.research.assert_called_once()
    record = researcher.research.call_args.args[0]
    assert record.personal.name == 'Jane Doe'
    assert len(record.transactions) == 3
    assert portal.screenshots == ['customer-profile']
    assert result.report.customer_name == 'Jane Doe'
    assert result.duration >= 0


def test_profile_without_name_is_not_found(tmp_path):
    researcher = stub_researcher()
    result = Orchestrator(lambda: FakePortal(html=NAMELESS_PROFILE_HTML), researcher, str(tmp_path)).investigate('Jane Doe')

    assert result.success
    researcher.research.assert_not_called()
    assert 'did not show a customer name' in result.report.executive_summary


def test_login_failure_is_reported_not_raised(tmp_path):
    portal = FakePortal(login_error=LoginError('Login failed: Invalid credentials'))
    researcher = stub_researcher()
    result = Orchestrator(lambda: portal, researcher, str(tmp_path)).investigate('Jane Doe')

    assert not result.success
    assert result.error == 'Login failed: Invalid credentials'
    assert result.report is None
    assert portal.closed
    researcher.research.assert_not_called()
    assert os.listdir(tmp_path) == []


def test_connection_check(tmp_path):
    researcher = MagicMock()
    researcher.ping.return_value = True
    ok = Orchestrator(lambda: FakePortal(), researcher, str(tmp_path)).test_connections()
    assert ok == {'browser': True, 'openai': True}

    failing = FakePortal(login_error=LoginError('Login failed'))
    researcher.ping.return_value = False
    assert Orchestrator(lambda: failing, researcher, str(tmp_path)).test_connections() == {
        'browser': False, 'openai': False,
    }
