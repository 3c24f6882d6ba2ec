import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from compliance_investigator.agent.assembler import CustomerRecordAssembler
from compliance_investigator.agent.state_machine import Decision, InvestigationStateMachine
from compliance_investigator.config import ExtractionSettings
from compliance_investigator.models import ComplianceReport
from compliance_investigator.report.markdown import save_report

logger = logging.getLogger(__name__)


@dataclass
class InvestigationResult:
    success: bool
    report: Optional[ComplianceReport] = None
    report_path: Optional[str] = None
    error: Optional[str] = None
    duration: float = 0.0


class Orchestrator:
    """
    Runs one investigation end to end: portal extraction, the found/not-found
    decision, research, and saving the report.

    `portal_factory` returns a fresh PortalSession (a context manager) per
    investigation, so no browser page is ever shared between runs.
    """

    def __init__(self, portal_factory: Callable, researcher, output_dir: str,
                 settings: Optional[ExtractionSettings] = None):
        self.portal_factory = portal_factory
        self.researcher = researcher
        self.output_dir = output_dir
        self.settings = settings

    def investigate(self, customer_name: str) -> InvestigationResult:
        start = time.monotonic()
        logger.info("Starting compliance investigation for %r", customer_name)
        try:
            machine = InvestigationStateMachine(self.researcher)
            decision = self._extract(customer_name, machine)
            report = machine.resolve(customer_name, decision)
            report_path = save_report(report, self.output_dir)
        except Exception as e:
            duration = time.monotonic() - start
            logger.error("Investigation of %r failed after %.2fs: %s", customer_name, duration, e)
            return InvestigationResult(success=False, error=str(e), duration=duration)

        duration = time.monotonic() - start
        logger.info("Investigation of %r completed in %.2fs: %s", customer_name, duration, report_path)
        return InvestigationResult(success=True, report=report, report_path=report_path, duration=duration)

    def _extract(self, customer_name: str, machine: InvestigationStateMachine) -> Decision:
        with self.portal_factory() as portal:
            portal.login()
            found = portal.search_customer(customer_name)
            if not found:
                return machine.decide(False, None, f'Customer "{customer_name}" not found in ComplianceOS')
            portal.capture_screenshot('customer-profile')
            record = CustomerRecordAssembler(self.settings).assemble(portal.page_context())
            return machine.decide(
                True, record, f'Customer "{customer_name}" profile did not show a customer name'
            )

    def test_connections(self) -> Dict[str, bool]:
        logger.info("Testing system connections...")
        try:
            with self.portal_factory() as portal:
                portal.login()
            browser_ok = True
        except Exception as e:
            logger.error("Browser connection test failed: %s", e)
            browser_ok = False
        openai_ok = self.researcher.ping()
        logger.info("Connection test results: browser=%s openai=%s", browser_ok, openai_ok)
        return {'browser': browser_ok, 'openai': openai_ok}
