"""Command-line interface for statement ingestion and categorization."""

import os
import sys
import click
import yaml
from typing import Optional, Dict, Any
import logging

from .categorization.corrections import CorrectionLog
from .categorization.matcher import CategoryMatcher
from .models.core import IngestionResult, TransactionType
from .parsers.scalars import AmountParser
from .pipeline import IngestionPipeline
from .utils.config_manager import ConfigManager
from .utils.csv_writer import CSVWriter
from .utils.error_handler import ErrorCategory, ErrorHandler, IngestionError, setup_logging
from .utils.format_dispatcher import FormatDispatcher


logger = logging.getLogger(__name__)

# Raised while loading or validating the configuration file
CONFIG_ERRORS = (ValueError, OSError, yaml.YAMLError)


class IngestionCLI:
    """Wires configuration, pipeline and output writers for the commands"""

    def __init__(self, config_path: Optional[str] = None):
        self.config_manager = ConfigManager(config_path)
        self.error_handler = ErrorHandler()
        self.csv_writer = CSVWriter()
        self.amount_parser = AmountParser()
        self._pipeline: Optional[IngestionPipeline] = None

    @property
    def config(self):
        return self.config_manager.load_config()

    @property
    def pipeline(self) -> IngestionPipeline:
        if self._pipeline is None:
            config = self.config
            matcher = CategoryMatcher(
                rules=self.config_manager.load_rule_table(),
                default_categories=config.default_categories,
            )
            self._pipeline = IngestionPipeline(config, matcher=matcher)
        return self._pipeline

    def ingest_file(self, file_path: str,
                    mime_type: Optional[str] = None,
                    categorize: bool = False) -> IngestionResult:
        """Run one file through the pipeline, recording any errors"""
        with open(file_path, 'rb') as f:
            file_bytes = f.read()

        try:
            result = self.pipeline.run(
                file_bytes,
                mime_type=mime_type,
                filename=os.path.basename(file_path),
                categorize=categorize or None,
            )
        except IngestionError as e:
            self.error_handler.record_ingestion_error(e, source=file_path)
            raise

        self.error_handler.record_parse_errors(result.errors, source=file_path)
        if result.is_empty:
            self.error_handler.log_warning(
                f"No transactions could be read from {file_path}",
                "EMPTY_RESULT",
                ErrorCategory.EXTRACTION,
                source=file_path,
                context={'rows_read': result.rows_read}
            )
        return result

    def write_outputs(self, result: IngestionResult, output: str) -> Dict[str, Any]:
        """Write transactions and rejected rows next to each other, then check the output"""
        outputs: Dict[str, Any] = {'transactions': None, 'rejected': None, 'problems': []}

        if result.transactions:
            output_path = self.csv_writer.create_unique_filename(output)
            if not self.csv_writer.write_transactions(result.transactions, output_path):
                raise OSError(f"Failed to write {output_path}")
            outputs['transactions'] = output_path
            outputs['problems'] = self.csv_writer.validate_csv_output(output_path)

        if result.errors:
            stem, ext = os.path.splitext(output)
            rejected_path = self.csv_writer.create_unique_filename(f"{stem}_rejected{ext or '.csv'}")
            if not self.csv_writer.write_errors(result.errors, rejected_path):
                raise OSError(f"Failed to write {rejected_path}")
            outputs['rejected'] = rejected_path

        return outputs

    def parse_amount(self, value: str):
        amount = self.amount_parser.parse(value)
        if amount is None:
            raise click.BadParameter(f"Not an amount: {value}", param_hint='AMOUNT')
        return amount

    def generate_config_template(self, output_path: str) -> bool:
        """Generate configuration template file"""
        try:
            self.config_manager.save_config_template(output_path)
            return True
        except OSError as e:
            self.error_handler.log_error(
                f"Failed to generate config template: {str(e)}",
                "CONFIG_TEMPLATE_ERROR",
                ErrorCategory.CONFIGURATION,
                source=output_path,
                exception=e
            )
            return False

    def get_supported_formats(self) -> Dict[str, Any]:
        dispatcher = FormatDispatcher(self.config)
        return {
            'extensions': dispatcher.supported_extensions(),
            'formats': dispatcher.supported_formats(),
        }


def _config_failure(cli_instance: IngestionCLI, e: Exception):
    cli_instance.error_handler.log_error(
        f"Invalid configuration: {str(e)}",
        "INVALID_CONFIG_VALUE",
        ErrorCategory.CONFIGURATION,
        source=cli_instance.config_manager.config_path,
        exception=e
    )
    click.echo(f"✗ Invalid configuration: {str(e)}")
    sys.exit(1)


# CLI Commands using Click
@click.group()
@click.option('--config', '-c', help='Path to configuration file')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--json-logs', is_flag=True, help='Emit log records as JSON lines')
@click.pass_context
def cli(ctx, config, verbose, json_logs):
    """fintrack - Normalize bank statements and categorize transactions"""

    setup_logging(verbose=verbose, json_logs=json_logs)

    ctx.ensure_object(dict)
    ctx.obj['cli'] = IngestionCLI(config)


@cli.command()
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--mime-type', '-m', help='Declared MIME type (or bare extension) of the file')
@click.option('--categorize', is_flag=True, help='Assign a category to every transaction')
@click.option('--output', '-o', help='Write normalized transactions to this CSV file')
@click.option('--report', '-r', help='Save an error report (JSON) to this file')
@click.pass_context
def ingest(ctx, file_path, mime_type, categorize, output, report):
    """Normalize a CSV, Excel or PDF statement"""

    cli_instance = ctx.obj['cli']

    try:
        result = cli_instance.ingest_file(file_path, mime_type=mime_type, categorize=categorize)
    except IngestionError as e:
        click.echo(f"✗ {str(e)}")
        if report:
            cli_instance.error_handler.generate_error_report(report)
        sys.exit(1)
    except CONFIG_ERRORS as e:
        _config_failure(cli_instance, e)

    summary = result.summary()
    status = "⚠" if result.is_empty else "✓"
    click.echo(f"{status} Ingested {file_path} ({result.source_format})")
    click.echo(f"  Rows read: {summary['rows_read']}")
    click.echo(f"  Transactions: {summary['total_transactions']}")
    click.echo(f"  Income: {summary['income_transactions']} totalling {summary['total_income']}")
    click.echo(f"  Expenses: {summary['expense_transactions']} totalling {summary['total_expenses']}")
    click.echo(f"  Rejected rows: {summary['errors']}")

    for error in result.errors:
        click.echo(f"    row {error.row_index}: {error.reason}")

    if output:
        try:
            outputs = cli_instance.write_outputs(result, output)
        except OSError as e:
            click.echo(f"✗ {str(e)}")
            sys.exit(1)
        if outputs['transactions']:
            click.echo(f"  Output: {outputs['transactions']}")
        for problem in outputs['problems']:
            click.echo(f"  ⚠ {problem}")
        if outputs['rejected']:
            click.echo(f"  Rejected rows file: {outputs['rejected']}")
    else:
        for transaction in result.transactions:
            category = f"  [{transaction.category_id}]" if transaction.category_id else ""
            click.echo(
                f"  {transaction.date.isoformat()}  {transaction.type.value:<7}  "
                f"{transaction.amount:>12}  {transaction.description}{category}"
            )

    if report:
        report_file = cli_instance.error_handler.generate_error_report(report)
        click.echo(f"  Report saved: {report_file}")


@cli.command()
@click.argument('description')
@click.argument('amount')
@click.option('--type', 'transaction_type', type=click.Choice(['expense', 'income']),
              default='expense', help='Transaction type')
@click.option('--scores', is_flag=True, help='Show the score of every candidate category')
@click.pass_context
def categorize(ctx, description, amount, transaction_type, scores):
    """Categorize a single transaction description"""

    cli_instance = ctx.obj['cli']
    value = cli_instance.parse_amount(amount)

    try:
        matcher = cli_instance.pipeline.matcher
    except CONFIG_ERRORS as e:
        _config_failure(cli_instance, e)

    category_id = matcher.categorize(description, value, transaction_type)
    click.echo(category_id if category_id is not None else "(uncategorized)")

    if scores:
        for candidate, score in matcher.score_all(description, value, transaction_type):
            click.echo(f"  {candidate}: {score}")


@cli.command()
@click.pass_context
def formats(ctx):
    """List supported statement formats"""

    cli_instance = ctx.obj['cli']

    try:
        info = cli_instance.get_supported_formats()
    except CONFIG_ERRORS as e:
        _config_failure(cli_instance, e)

    click.echo("Supported formats")
    click.echo("=" * 40)
    for entry in info['formats']:
        click.echo(f"{entry['type']} ({', '.join(entry['extensions'])})")
        click.echo(f"  {entry['description']}")
        click.echo(f"  Example: {entry['example']}")


@cli.command()
@click.argument('output_path', default='fintrack_config.json')
@click.option('--format', type=click.Choice(['json', 'yaml']), default='json', help='Configuration file format')
@click.pass_context
def init_config(ctx, output_path, format):
    """Generate configuration template file"""

    cli_instance = ctx.obj['cli']

    # Adjust extension based on format
    if format == 'yaml' and not output_path.endswith(('.yml', '.yaml')):
        output_path = output_path.replace('.json', '.yml')
        if not output_path.endswith('.yml'):
            output_path += '.yml'
    elif format == 'json' and not output_path.endswith('.json'):
        output_path = output_path.replace('.yml', '.json').replace('.yaml', '.json')
        if not output_path.endswith('.json'):
            output_path += '.json'

    if cli_instance.generate_config_template(output_path):
        click.echo(f"✓ Configuration template generated: {output_path}")
        click.echo("  Edit category_rules to tune how transactions are categorized")
    else:
        click.echo("✗ Failed to generate configuration template")
        sys.exit(1)


@cli.command()
@click.argument('description')
@click.argument('amount')
@click.argument('category_id')
@click.option('--type', 'transaction_type', type=click.Choice(['expense', 'income']),
              default='expense', help='Transaction type')
@click.pass_context
def correct(ctx, description, amount, category_id, transaction_type):
    """Record a user correction of a transaction's category"""

    cli_instance = ctx.obj['cli']
    value = cli_instance.parse_amount(amount)

    try:
        config = cli_instance.config
        known = cli_instance.config_manager.known_categories()
    except CONFIG_ERRORS as e:
        _config_failure(cli_instance, e)

    if category_id not in known:
        click.echo(f"⚠ {category_id} is not a configured category")

    log = CorrectionLog(config.correction_log_path)
    try:
        log.record(description, value, TransactionType.from_value(transaction_type), category_id)
    except OSError as e:
        click.echo(f"✗ Could not record correction: {str(e)}")
        sys.exit(1)

    click.echo(f"✓ Recorded: '{description}' -> {category_id}")


if __name__ == '__main__':
    cli()
