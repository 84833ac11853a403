"""
Downloadable CSV templates for each bulk upload.
"""

import csv
import io
from typing import Dict, List

TEMPLATES: Dict[str, Dict[str, object]] = {
    "founder_investors": {
        "filename": "investors_import_template.csv",
        "headers": [
            "Full Name", "Email", "Company Name", "Investor Type", "Stage", "Country",
            "City", "Amount", "Is Investment", "Investment Type", "Interest Rate",
            "Valuation", "Num Shares",
        ],
        "rows": [
            ["John Smith", "john@acmeventures.com", "Acme Ventures", "VC", "seed", "USA",
             "San Francisco", "100000", "true", "equity", "", "1000000", "10000"],
            ["Sarah Johnson", "sarah@bluecapital.com", "Blue Capital", "Angel", "pre-seed", "UK",
             "London", "50000", "true", "debt", "8", "", ""],
        ],
    },
    "contacts": {
        "filename": "contacts_template.csv",
        "headers": [
            "Full Name", "Email", "Company Name", "Investor Type", "Stage", "Phone",
            "LinkedIn URL", "Notes", "HQ Country", "HQ City",
        ],
        "rows": [
            ["John Smith", "john@example.com", "Acme Ventures", "VC", "Discovery", "+14155551234",
             "https://linkedin.com/in/johnsmith", "Met at TechCrunch event", "USA", "San Francisco"],
            ["Sarah Johnson", "sarah@example.com", "Blue Capital", "Angel", "Meeting", "+447911123456",
             "https://linkedin.com/in/sarahjohnson", "Interested in SaaS startups", "UK", "London"],
        ],
    },
    "investor_contacts": {
        "filename": "investor_contacts_template.csv",
        "headers": [
            "Full Name", "Email", "Role Type", "Company Name", "Title", "Email Verified",
            "Mobile Phone", "LinkedIn URL", "Activity Score",
        ],
        "rows": [
            ["Jane Doe", "jane@acmeventures.com", "Partner", "Acme Ventures", "General Partner",
             "true", "+14155556789", "https://linkedin.com/in/janedoe", "80"],
        ],
    },
    "investors": {
        "filename": "investors_template.csv",
        "headers": [
            "First Name", "Last Name", "Email", "Country", "City", "Invests Via Company",
            "Company Name", "Investor Type", "Title",
        ],
        "rows": [
            ["David", "Brown", "david@bluecapital.com", "UK", "London", "yes",
             "Blue Capital", "VC", "Managing Director"],
            ["Maria", "Lopez", "maria@example.com", "Spain", "Madrid", "no", "", "", ""],
        ],
    },
}


def template_names() -> List[str]:
    return list(TEMPLATES)


def render_template(name: str) -> str:
    """Render a template as CSV text. Raises KeyError for unknown names."""
    template = TEMPLATES[name]
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(template["headers"])
    writer.writerows(template["rows"])
    return buffer.getvalue()
