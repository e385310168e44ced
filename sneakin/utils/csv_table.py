"""
CSV table I/O for catalog exports.

Exports are comma-delimited with a header line; fields may be double-quoted
and contain commas, escaped quotes ("") or newlines.
"""

import csv
import io
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union


@dataclass
class CsvTable:
    """Header-ordered table of string cells."""
    headers: List[str]
    rows: List[Dict[str, str]] = field(default_factory=list)

    def find_column(self, name: str) -> Optional[str]:
        """Return the header matching `name` case-insensitively, or None."""
        wanted = name.lower()
        for header in self.headers:
            if header.lower() == wanted:
                return header
        return None

    def add_column(self, name: str) -> None:
        """Append a column if absent. Existing values are kept."""
        if name not in self.headers:
            self.headers.append(name)


def parse_table(text: str) -> CsvTable:
    """
    Parse CSV text into a CsvTable.

    Blank lines are skipped, header names and cells are stripped of surrounding
    whitespace, and short rows are padded with empty strings.

    Raises:
        ValueError: If the text has no header or no data rows
    """
    reader = csv.reader(io.StringIO(text))
    records = [record for record in reader if any(cell.strip() for cell in record)]

    if len(records) < 2:
        raise ValueError("CSV has no data rows")

    headers = [h.strip() for h in records[0]]
    rows = []
    for record in records[1:]:
        cells = [c.strip() for c in record]
        rows.append({
            header: cells[idx] if idx < len(cells) else ''
            for idx, header in enumerate(headers)
        })

    return CsvTable(headers=headers, rows=rows)


def to_csv_text(table: CsvTable) -> str:
    """Serialise a table; only fields containing commas, quotes or newlines are quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator='\n')
    writer.writerow(table.headers)
    for row in table.rows:
        writer.writerow([row.get(header, '') or '' for header in table.headers])
    return buffer.getvalue()


def read_table(path: Union[str, Path]) -> CsvTable:
    # utf-8-sig drops the BOM spreadsheet exports prepend
    with open(path, 'r', encoding='utf-8-sig', newline='') as f:
        return parse_table(f.read())


def write_table(path: Union[str, Path], table: CsvTable) -> None:
    with open(path, 'w', encoding='utf-8', newline='') as f:
        f.write(to_csv_text(table))
