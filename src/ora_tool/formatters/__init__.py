"""Output formatters for ORA Tool."""

from ora_tool.formatters.base import Formatter, FormatterRegistry, registry
from ora_tool.formatters.csv import CSVFormatter
from ora_tool.formatters.json import JSONFormatter
from ora_tool.formatters.table import TableFormatter
