import argparse
import json
import sys
from functools import partial

from compliance_investigator import config
from compliance_investigator.agent.assembler import CustomerRecordAssembler
from compliance_investigator.agent.orchestrator import Orchestrator
from compliance_investigator.agent.researcher import ResearchAgent
from compliance_investigator.errors import ComplianceAgentError
from compliance_investigator.parser.snapshot import SnapshotPageContext
from compliance_investigator.scraper.portal import PortalSession
from compliance_investigator.utils.file_ops import read_text
from compliance_investigator.utils.logging_utils import configure_logging


def _bool_arg(value: str) -> bool:
    return value.strip().lower() not in ('false', '0', 'no', 'off')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='compliance-investigator',
        description='AI-powered compliance investigation agent',
    )
    parser.add_argument('--verbose', action='store_true', help='Enable verbose logging')
    sub = parser.add_subparsers(dest='command', required=True)

    investigate = sub.add_parser('investigate', help='Investigate a customer from ComplianceOS')
    investigate.add_argument('customer_name', help='Name of the customer to investigate')
    investigate.add_argument('-o', '--output', default=config.OUTPUT_DIR, help='Output directory for reports')
    investigate.add_argument('--headless', type=_bool_arg, default=config.HEADLESS,
                             help='Run browser in headless mode (true/false)')

    sub.add_parser('test', help='Test connections to ComplianceOS and OpenAI')

    extract = sub.add_parser('extract', help='Extract a customer record from a saved profile page (HTML)')
    extract.add_argument('html_file', help='Path to the saved page HTML')
    return parser


def build_orchestrator(output_dir: str, headless: bool) -> Orchestrator:
    portal_factory = partial(
        PortalSession,
        url=config.COMPLIANCE_URL,
        username=config.COMPLIANCE_USERNAME,
        password=config.COMPLIANCE_PASSWORD,
        headless=headless,
        timeout=config.BROWSER_TIMEOUT,
        screenshot_dir=config.SCREENSHOT_DIR,
    )
    researcher = ResearchAgent.from_api_key(config.require_openai_key(), model=config.OPENAI_MODEL)
    return Orchestrator(portal_factory, researcher, output_dir, settings=config.extraction_settings())


def run_investigate(args) -> int:
    print("\n--- Compliance Investigator ---\n")
    print(f"Target Customer: {args.customer_name}")
    print(f"Output Directory: {args.output}\n")
    orchestrator = build_orchestrator(args.output, args.headless)
    result = orchestrator.investigate(args.customer_name)
    if not result.success:
        print("\n[FAILED] Investigation Failed", file=sys.stderr)
        print(f"Error: {result.error}\n", file=sys.stderr)
        return 1

    report = result.report
    overview = report.internal_data_overview
    print("Investigation Complete\n")
    print(f"Customer: {report.customer_name}")
    print(f"Risk Level: {overview.risk_level}")
    print(f"Risk Score: {report.risk_assessment.overall_risk_score}")
    print(f"Transactions: {overview.transactions_summary.total} ({overview.transactions_summary.flagged} flagged)")
    print(f"Duration: {result.duration:.2f}s\n")
    print("Executive Summary:")
    print(report.executive_summary + "\n")
    if report.recommended_actions:
        print("Recommended Actions:")
        for i, action in enumerate(report.recommended_actions, 1):
            print(f"{i}. {action}")
    print(f"\nReport saved to: {result.report_path}\n")
    return 0


def run_test() -> int:
    print("\nTesting System Connections...\n")
    results = build_orchestrator(config.OUTPUT_DIR, config.HEADLESS).test_connections()
    print('Browser (ComplianceOS):', '[OK] Connected' if results['browser'] else '[FAIL] Failed')
    print('OpenAI API:', '[OK] Connected' if results['openai'] else '[FAIL] Failed')
    return 0 if all(results.values()) else 1


def run_extract(args) -> int:
    page = SnapshotPageContext(read_text(args.html_file), url=args.html_file)
    record = CustomerRecordAssembler(config.extraction_settings()).assemble(page)
    print(json.dumps(record.model_dump(mode='json'), indent=2, ensure_ascii=False))
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging('DEBUG' if args.verbose else config.LOG_LEVEL, config.LOG_FILE)
    try:
        if args.command == 'investigate':
            return run_investigate(args)
        if args.command == 'test':
            return run_test()
        return run_extract(args)
    except ComplianceAgentError as e:
        print(f"\n[FATAL] {e}\n", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
