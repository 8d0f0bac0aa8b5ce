"""Command-line interface for the Plaid CSV exporter."""

import logging
import re
import sys
from datetime import datetime, timedelta
from typing import Callable, Optional, TextIO

import click

from . import __version__
from .api.plaid_client import PlaidClient
from .models.core import (
    DEFAULT_ENVIRONMENT,
    ENVIRONMENTS,
    REFRESH_THRESHOLD_LIMIT,
    ExportOptions,
    ItemConfig,
    ItemSummary,
    ProviderConfig,
    RunOptions,
    RunSummary,
)
from .utils.aggregator import ActivityAggregator
from .utils.config_manager import DEFAULT_CONFIG_PATH, ConfigManager
from .utils.csv_writer import CSVWriter, check_number_format
from .utils.error_handler import Plaid2CsvError, configure_logging, log_error
from .utils.paginator import PageAccumulator
from .utils.record_filter import RecordFilter, RecordSorter
from .utils.refresh_checker import RefreshChecker


logger = logging.getLogger(__name__)


class Plaid2CsvCLI:
    """Runs the export pipeline for every configured item.

    Items are handled one at a time in item-id order: refresh check, fetch,
    aggregate, filter, clamp, sort, then export to both outputs. Provider and
    transport errors propagate and end the run; export errors end only the
    current item.
    """

    def __init__(self,
                 config: ProviderConfig,
                 run_options: RunOptions,
                 export_options: Optional[ExportOptions] = None,
                 client: Optional[PlaidClient] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        self.config = config
        self.run_options = run_options
        self.export_options = export_options or ExportOptions()

        # Initialize components
        self.client = client or PlaidClient(config)
        self.refresh_checker = RefreshChecker(self.client, run_options.refresh_threshold, clock=clock)
        self.aggregator = ActivityAggregator(PageAccumulator(self.client))
        self.record_filter = RecordFilter()
        self.record_sorter = RecordSorter()
        self.csv_writer = CSVWriter(self.export_options)

    def run(self, transactions_output: TextIO, investments_output: TextIO) -> RunSummary:
        """Export all items to the two outputs"""
        summary = RunSummary()

        if not self.run_options.omit_header:
            self.csv_writer.write_header(transactions_output, CSVWriter.TRANSACTION_HEADERS)
            self.csv_writer.write_header(investments_output, CSVWriter.INVESTMENT_HEADERS)

        for item in self.config.sorted_items():
            item_summary = self.process_item(item, transactions_output, investments_output)
            if item_summary is None:
                summary.skipped_items.append(item.item_id)
            else:
                summary.items.append(item_summary)

        return summary

    def process_item(self, item: ItemConfig, transactions_output: TextIO,
                     investments_output: TextIO) -> Optional[ItemSummary]:
        """Run the pipeline for one item.

        Returns:
            ItemSummary, or None when the provider reports an item id that is
            not in the configuration
        """
        opts = self.run_options
        start, end = opts.start, opts.effective_end

        self.refresh_checker.check(item)
        bundle = self.aggregator.collect(item, start, end)

        item_config = self.config.items.get(bundle.item_id)
        if item_config is None:
            logger.warning(f"skipping response for unknown item ID: {bundle.item_id!r}")
            return None

        if self.export_options.omit_pending:
            self.record_filter.omit_pending(bundle)
        if opts.clamp_semimonthly:
            self.record_filter.clamp_semimonthly(bundle, start, end)
        if opts.sort:
            self.record_sorter.sort(bundle)

        item_summary = ItemSummary(item_id=item_config.item_id, name=item_config.name)

        result = self.csv_writer.write_transactions(item_config, bundle, transactions_output)
        item_summary.transaction_rows = result.rows_written
        if not result.success:
            self._record_failure(item_summary, result.error)
            return item_summary

        result = self.csv_writer.write_investments(item_config, bundle, investments_output)
        item_summary.investment_rows = result.rows_written
        if not result.success:
            self._record_failure(item_summary, result.error)

        return item_summary

    @staticmethod
    def _record_failure(item_summary: ItemSummary, error: Exception) -> None:
        item_summary.errors.append(str(error))
        if isinstance(error, Plaid2CsvError):
            log_error(logger, error)
        else:
            logger.error(f"write output for {item_summary.name!r}: {error}")


_DURATION_PART = re.compile(r'(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)')
_DURATION_UNITS = {
    'ns': timedelta(microseconds=0.001),
    'us': timedelta(microseconds=1),
    'µs': timedelta(microseconds=1),
    'ms': timedelta(milliseconds=1),
    's': timedelta(seconds=1),
    'm': timedelta(minutes=1),
    'h': timedelta(hours=1),
}


def parse_duration(text: str) -> timedelta:
    """Parse durations such as "24h", "90m" or "1h30m".

    Raises:
        ValueError: If the text is not a valid duration
    """
    text = text.strip()
    if text in ('0', '+0'):
        return timedelta(0)

    position = 0
    total = timedelta(0)
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position == 0 or position != len(text):
        raise ValueError(f"invalid duration: {text!r}")
    return total


def format_duration(value: timedelta) -> str:
    hours, remainder = divmod(int(value.total_seconds()), 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours}h{minutes}m{seconds}s"


class DurationType(click.ParamType):
    name = "duration"

    def convert(self, value, param, ctx):
        if isinstance(value, timedelta):
            return value
        try:
            return parse_duration(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


@click.command(name='plaid2csv')
@click.option('--start', required=True, type=click.DateTime(formats=['%Y-%m-%d']),
              help='Start date, inclusive. Format: YYYY-MM-DD')
@click.option('--end', required=True, type=click.DateTime(formats=['%Y-%m-%d']),
              help='End date. Format: YYYY-MM-DD')
@click.option('--environment', default=DEFAULT_ENVIRONMENT, type=click.Choice(ENVIRONMENTS),
              help='Environment to run in')
@click.option('--config', 'config_path', default=DEFAULT_CONFIG_PATH, help='Config file path')
@click.option('--output', default='transactions.csv', help='Path for transactions output file')
@click.option('--investments-output', default='investments.csv', help='Path for investments output file')
@click.option('--clamp-semimonthly', is_flag=True, help='Remove transactions outside semimonthly period')
@click.option('--inclusive-end-date', is_flag=True, help='Include transactions on the end date')
@click.option('--sort', 'sort_output', is_flag=True, help='Sort transactions by date for each item')
@click.option('--omit-header', is_flag=True, help='Omit csv header')
@click.option('--omit-pending', is_flag=True, help='Omit pending transactions')
@click.option('--yes', is_flag=True, help='Assume yes to prompts; run non-interactively')
@click.option('--refresh-threshold', type=DurationType(), default=format_duration(REFRESH_THRESHOLD_LIMIT),
              help='WARN: refreshes are billed per item. Request refresh if older than duration')
@click.option('--category-delimiter', default=ExportOptions.category_delimiter,
              help='Delimiter for joining category hierarchy')
@click.option('--format-post-date', default=ExportOptions.post_date_format,
              help='Output format for transaction post date')
@click.option('--format-auth-date', default=ExportOptions.auth_date_format,
              help='Output format for transaction authorization date')
@click.option('--format-amount', default=ExportOptions.amount_format, help='Output format for amounts')
@click.option('--format-price', default=ExportOptions.price_format, help='Output format for security prices')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--log-file', help='Also write JSON log records to this file')
@click.version_option(__version__)
def main(start, end, environment, config_path, output, investments_output, clamp_semimonthly,
         inclusive_end_date, sort_output, omit_header, omit_pending, yes, refresh_threshold,
         category_delimiter, format_post_date, format_auth_date, format_amount, format_price,
         verbose, log_file):
    """Query Plaid transaction data and output to csv"""
    configure_logging(verbose, log_file)

    if environment == 'production' and not yes:
        click.echo("This will run against the production environment and may incur charges. "
                   "Enter 'yes' to continue")
        answer = click.prompt('', default='', show_default=False, prompt_suffix='')
        if answer.strip() != 'yes':
            return

    start_date, end_date = start.date(), end.date()
    if end_date < start_date:
        raise click.BadParameter('end date is before start date', param_hint='--end')

    for option, number_format in (('--format-amount', format_amount), ('--format-price', format_price)):
        try:
            check_number_format(number_format)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint=option)

    run_options = RunOptions(
        start=start_date,
        end=end_date,
        refresh_threshold=refresh_threshold,
        clamp_semimonthly=clamp_semimonthly,
        inclusive_end_date=inclusive_end_date,
        sort=sort_output,
        omit_header=omit_header
    )
    export_options = ExportOptions(
        omit_pending=omit_pending,
        post_date_format=format_post_date,
        auth_date_format=format_auth_date,
        amount_format=format_amount,
        price_format=format_price,
        category_delimiter=category_delimiter
    )

    try:
        config = ConfigManager(config_path).load_config(environment)
        exporter = Plaid2CsvCLI(config, run_options, export_options)

        with open(output, 'a', newline='', encoding='utf-8') as transactions_file, \
                open(investments_output, 'a', newline='', encoding='utf-8') as investments_file:
            summary = exporter.run(transactions_file, investments_file)
    except Plaid2CsvError as e:
        log_error(logger, e)
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)
    except OSError as e:
        click.echo(f"✗ open output file for writing: {e}", err=True)
        sys.exit(1)

    for item in summary.items:
        mark = "✓" if item.success else "✗"
        click.echo(f"{mark} {item.name}: {item.transaction_rows} transaction rows, "
                   f"{item.investment_rows} investment rows")
        for error in item.errors:
            click.echo(f"    {error}")
    for item_id in summary.skipped_items:
        click.echo(f"⚠ skipped item {item_id}: provider reported an unknown item ID")

    click.echo(f"  Total transaction rows: {summary.total_transaction_rows}")
    click.echo(f"  Total investment rows: {summary.total_investment_rows}")

    if summary.failed_items:
        click.echo(f"\n⚠ {len(summary.failed_items)} item(s) failed export. Check logs for details.")
        sys.exit(1)


if __name__ == '__main__':
    main()
