"""Terminal and spreadsheet output.

Everything that touches the terminal lives behind ``Presenter``. Adapters and
the rebind workflow return rows and lines and never print.
"""

import logging

import pandas as pd
import typer
from openpyxl import load_workbook
from openpyxl.styles import Alignment, PatternFill
from openpyxl.utils import get_column_letter
from rich.console import Console
from rich.table import Table
from rich.text import Text

logger = logging.getLogger(__name__)


def workbook_with_format(file_name_with_dir):
    workbook = load_workbook(file_name_with_dir)
    header_fill = PatternFill(start_color='FFFFCC', end_color='FFFFCC', fill_type='solid')
    for sheet_name in workbook.sheetnames:
        worksheet = workbook[sheet_name]
        for cell in worksheet[1]:
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal='center', vertical='center')
        worksheet.auto_filter.ref = worksheet.dimensions
        for column in worksheet.columns:
            max_length = max((len(str(cell.value)) for cell in column if cell.value), default=0) + 2
            column_letter = get_column_letter(column[0].column)
            worksheet.column_dimensions[column_letter].width = max_length
            for cell in column:
                cell.alignment = Alignment(horizontal='center', vertical='center')
    workbook.save(file_name_with_dir)


class Presenter:
    def __init__(self, console=None, err_console=None):
        self.console = console or Console()
        self.err_console = err_console or Console(stderr=True)

    def table(self, rows, title=None):
        if not rows:
            self.console.print("No resources found.", style="dim")
            return

        table = Table(title=title, show_lines=True)
        columns = list(rows[0].keys())
        for column in columns:
            table.add_column(column, overflow="fold")
        for row in rows:
            table.add_row(*[Text(str(row.get(column, ""))) for column in columns])

        self.console.print(table)

    def lines(self, lines):
        for line in lines:
            self.console.print(line, markup=False, highlight=False, soft_wrap=True)

    def error(self, message):
        self.err_console.print(f"Error: {message}", markup=False, highlight=False, soft_wrap=True)

    def choose(self, choices, message):
        """Ask for one of ``choices``. Returns "" when nothing is chosen."""
        if not choices:
            self.console.print("Nothing to choose from.", style="dim")
            return ""

        for index, choice in enumerate(choices, start=1):
            self.console.print(f"{index:>3}) {choice}", markup=False, highlight=False, soft_wrap=True)

        answer = typer.prompt(f"{message} [1-{len(choices)}, 0 to cancel]", default=0, type=int)
        if answer < 1 or answer > len(choices):
            return ""
        return choices[answer - 1]

    def export(self, rows, filename, sheet_name):
        df = pd.DataFrame(rows)
        with pd.ExcelWriter(filename, engine='openpyxl') as writer:
            df.to_excel(writer, sheet_name=sheet_name[:31], index=False)

        workbook_with_format(filename)
        logger.info("Saved %d row(s) to %s", len(rows), filename)
        self.console.print(f"Saved {len(rows)} row(s) to {filename}", markup=False, highlight=False, soft_wrap=True)
