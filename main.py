# =============================================================================
# main.py - CLI entry point
# =============================================================================

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from core.ad_client import ActiveDirectoryClient
from core.exceptions import InputError
from core.graph_client import GraphClient
from processors.inbox_rules import InboxRuleInspector
from processors.proxy_addresses import ProxyAddressProcessor, ProxyAddressByUPNProcessor
from processors.upn_update import UPNUpdateProcessor
from utils.config import Config


UPDATE_PROCESSORS = {
    'upn': UPNUpdateProcessor,
    'proxy': ProxyAddressProcessor,
    'proxy-upn': ProxyAddressByUPNProcessor,
}


def setup_logging(level: str = "INFO") -> str:
    """Setup logging configuration with both console and file output"""
    # Create logs directory if it doesn't exist
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    # Generate date-stamped filename
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_filename = log_dir / f"tenant_admin_{timestamp}.log"

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper()))
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler always logs DEBUG
    file_handler = logging.FileHandler(log_filename, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized - Console: {level.upper()}, File: DEBUG")
    logger.info(f"Log file: {log_filename}")

    return str(log_filename)


def handle_update_command(args, config) -> None:
    """Handle the CSV driven confirm-and-apply update commands"""
    logger = logging.getLogger(__name__)
    processor_class = UPDATE_PROCESSORS[args.command]

    # Column problems abort before connecting
    records = processor_class.load_records(args.input_csv)
    logger.info(f"Read {len(records)} records from {args.input_csv}")

    if not config.validate_ad_config():
        logger.error(f"Missing required environment variables: {config.get_missing_ad_vars()}")
        sys.exit(1)

    with ActiveDirectoryClient(
            config.ad_server, config.ad_username,
            config.ad_password, config.base_dn,
            use_ssl=config.ad_use_ssl
    ) as ad_client:
        processor = processor_class(ad_client, auto_accept=args.yes)
        processor.run(records)


def handle_inbox_rules(args, config) -> None:
    """Handle the read-only inbox rule inspection"""
    logger = logging.getLogger(__name__)

    if not config.validate_graph_config():
        logger.error(f"Missing required environment variables: {config.get_missing_graph_vars()}")
        sys.exit(1)

    with GraphClient(config.tenant_id, config.graph_client_id, config.graph_client_secret) as graph_client:
        inspector = InboxRuleInspector(
            graph_client,
            internal_domains=args.internal_domain,
            suspicious_only=args.suspicious_only
        )

        mailboxes = list(args.mailbox or [])
        if args.input_csv:
            mailboxes.extend(inspector.read_mailboxes(args.input_csv))

        rules, _ = inspector.inspect(mailboxes)
        if args.output:
            inspector.export(rules, args.output)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Microsoft 365 / Active Directory tenant administration")
    subparsers = parser.add_subparsers(dest='command', help='Command')

    update_help = {
        'upn': 'Update userPrincipalName (columns: SamAccountName, CurrentUPN, NewUPN)',
        'proxy': 'Update proxy addresses (columns: SamAccountName, PrimarySMTP, SecondarySMTP)',
        'proxy-upn': 'Update proxy addresses (columns: UserPrincipalName, PrimarySMTP, SecondarySMTP)',
    }
    for name, help_text in update_help.items():
        update_parser = subparsers.add_parser(name, help=help_text)
        update_parser.add_argument('input_csv', help='Input CSV file path')
        update_parser.add_argument('-y', '--yes', action='store_true',
                                   help='Apply every change without prompting')

    rules_parser = subparsers.add_parser('inbox-rules', help='Report mailbox inbox rules')
    source = rules_parser.add_mutually_exclusive_group(required=True)
    source.add_argument('--mailbox', action='append', help='Mailbox UPN (repeatable)')
    source.add_argument('--input-csv', help='CSV file with a UserPrincipalName column')
    rules_parser.add_argument('--output', help='Report file (.csv or .xlsx)')
    rules_parser.add_argument('--internal-domain', action='append',
                              help='Domain treated as internal (repeatable, default: mailbox domain)')
    rules_parser.add_argument('--suspicious-only', action='store_true',
                              help='Only report forwarding/redirect/delete rules')

    # Global arguments
    parser.add_argument('--log-level', default='INFO', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level')
    return parser


def main(argv=None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    input_file = getattr(args, 'input_csv', None)
    if input_file and not Path(input_file).exists():
        logger.error(f"Input file not found: {input_file}")
        sys.exit(1)

    config = Config()

    try:
        if args.command in UPDATE_PROCESSORS:
            handle_update_command(args, config)
        else:
            handle_inbox_rules(args, config)
    except InputError as e:
        logger.error(str(e))
        sys.exit(1)
    except ConnectionError as e:
        logger.error(f"Connection failed: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Processing failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
