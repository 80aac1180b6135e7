from typing import List

from pydantic import BaseModel, Field

# Column order of the spreadsheet the sales team keeps.
CSV_TEMPLATE_COLUMNS = [
    "Firm",
    "Revenue",
    "Website",
    "GO/SKIP",
    "Phone N.",
    "Whose Phone",
    "CEO",
    "Called",
    "Last contact",
    "Notes",
    "Status",
]

CSV_TEMPLATE = (
    ",".join(CSV_TEMPLATE_COLUMNS)
    + "\n"
    + "Example Company,1000000,https://example.com,,+358401234567,Contact Person,"
    "John Doe,Yes,2024-01-15,Initial contact made,prospect\n"
    + "Another Company,500000,https://another.com,Skip,+358407654321,Secretary,"
    "Jane Smith,No,2024-01-10,Follow up needed,qualified\n"
)


class ParsedLead(BaseModel):
    """One accepted spreadsheet row, before it becomes a Lead."""

    company: str
    revenue: str = ""
    website: str = ""
    go_skip: str = ""
    phone: str = ""
    whose_phone: str = ""
    ceo: str = ""
    called: str = ""
    last_contact: str = ""
    notes: str = ""
    status: str = ""
    # The CEO doubles as the lead's contact name.
    name: str = "Unknown"


class ImportResult(BaseModel):
    """Response for a CSV import run."""

    total: int = 0
    imported: int = 0
    duplicates: int = 0
    skipped: int = 0
    errors: List[str] = Field(default_factory=list)
