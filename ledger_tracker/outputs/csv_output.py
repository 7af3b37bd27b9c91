# ledger_tracker/outputs/csv_output.py

import csv
import io
import logging
import os
from datetime import date

from ledger_tracker.outputs.base import BaseOutput

logger = logging.getLogger(__name__)

HEADER = ['date', 'kind', 'category', 'description', 'amount']


def render_csv(entries):
    """
    Render entries as CSV text: one header row, then one row per entry in
    the order given. Text fields are quoted; amounts keep two decimals.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator='\n')
    writer.writerow(HEADER)
    for entry in entries:
        writer.writerow([
            entry.date.isoformat(),
            entry.kind.value,
            entry.category,
            entry.description,
            entry.amount,
        ])
    return buffer.getvalue()


class CSVOutput(BaseOutput):
    """
    Writes entries to entries_<today>.csv inside the configured export_dir,
    unless an explicit path is given.
    """
    def __init__(self, config):
        self.config     = config
        self.output_dir = config.get('export_dir', 'exports')

    def write(self, entries, path=None):
        if path is None:
            os.makedirs(self.output_dir, exist_ok=True)
            filename = f"entries_{date.today().isoformat()}.csv"
            path = os.path.join(self.output_dir, filename)

        with open(path, 'w', newline='', encoding='utf-8') as f:
            f.write(render_csv(entries))

        logger.info("Exported %d entries to %s", len(entries), path)
        return path
