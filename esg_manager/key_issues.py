"""
ESG Key Issue Catalogue

The disclosure questions rendered by the project submission form. Each key
issue becomes a row in ``key_issues`` backed by its own ``msci_standards`` row,
which holds the issue's input criteria and benchmark.

Each key issue has:
- code: Stable slug, used to keep seeding idempotent
- pillar: "E" (Environmental), "S" (Social) or "G" (Governance)
- name / description: What the form asks
- msci_weight: Relative weight of the issue within the MSCI-style rating
- criteria: How the answer is collected
  - {"options": [...]} renders a dropdown
  - {"input_type": "numeric", "unit": ...} renders a number field
  - anything else renders free text
- benchmark: Reference value shown next to the field (informational only,
  evaluation never reads it)
"""

import json
import logging

from esg_manager import db
from esg_manager.models import KeyIssue, MSCIStandard, PILLARS

logger = logging.getLogger(__name__)

STANDARD_VERSION = "MSCI-ESG-2024.1"

INDUSTRIES = [
    "Technology",
    "Finance & Banking",
    "Energy",
    "Industrial",
    "Healthcare",
    "Real Estate",
    "Transportation",
    "Agriculture",
    "Education",
    "Tourism",
]

# Shared answer scales
_PROGRAMME_MATURITY = [
    "Systematic programme in place",
    "Partial programme",
    "Under study",
    "No programme",
]
_COMMUNITY_PROGRAMMES = [
    "Regular programmes",
    "Occasional programmes",
    "Supports external organisations",
    "No dedicated programme",
]

KEY_ISSUES = [
    # =========================================================================
    # ENVIRONMENTAL
    # =========================================================================
    {
        "code": "scope1_2_emissions",
        "pillar": "E",
        "name": "Scope 1 & 2 GHG emissions",
        "description": "Total direct and energy-indirect greenhouse gas emissions for the reporting year.",
        "msci_weight": 12.0,
        "criteria": {"input_type": "numeric", "unit": "tCO2e"},
        "benchmark": {"industry_median": 25000, "unit": "tCO2e"},
    },
    {
        "code": "water_consumption_initiatives",
        "pillar": "E",
        "name": "Water consumption initiatives",
        "description": "Programmes to reduce water withdrawal and consumption.",
        "msci_weight": 6.0,
        "criteria": {"options": _PROGRAMME_MATURITY},
        "benchmark": {"expected": "Systematic programme in place"},
    },
    {
        "code": "carbon_footprint_programs",
        "pillar": "E",
        "name": "Carbon footprint reduction programmes",
        "description": "Programmes that measure and reduce the organisation's carbon footprint.",
        "msci_weight": 10.0,
        "criteria": {"options": [
            "Comprehensive programme",
            "Partial programme",
            "In development",
            "No programme",
        ]},
        "benchmark": {"expected": "Comprehensive programme"},
    },
    {
        "code": "water_usage_cubic_meters",
        "pillar": "E",
        "name": "Water usage",
        "description": "Total water used during the reporting year.",
        "msci_weight": 4.0,
        "criteria": {"input_type": "numeric", "unit": "m3"},
        "benchmark": {"industry_median": 120000, "unit": "m3"},
    },
    {
        "code": "waste_recycling_programs",
        "pillar": "E",
        "name": "Waste recycling",
        "description": "Share of operational waste diverted to recycling.",
        "msci_weight": 6.0,
        "criteria": {"options": [
            "More than 80% recycled",
            "60-80% recycled",
            "40-60% recycled",
            "Less than 40% recycled",
            "No recycling",
        ]},
        "benchmark": {"expected": "60-80% recycled"},
    },
    {
        "code": "biodiversity_conservation",
        "pillar": "E",
        "name": "Biodiversity conservation",
        "description": "Conservation activities protecting habitats affected by operations.",
        "msci_weight": 4.0,
        "criteria": {"options": [
            "Dedicated conservation programme",
            "Supports conservation programmes",
            "Under study",
            "No dedicated programme",
        ]},
        "benchmark": {"expected": "Supports conservation programmes"},
    },
    {
        "code": "renewable_energy_programs",
        "pillar": "E",
        "name": "Renewable energy sources",
        "description": "Main renewable energy source used by the organisation.",
        "msci_weight": 8.0,
        "criteria": {"options": [
            "Solar",
            "Wind",
            "Hydro",
            "Biomass",
            "No renewable energy",
        ]},
        "benchmark": {},
    },
    {
        "code": "renewable_energy_percentage",
        "pillar": "E",
        "name": "Renewable energy share",
        "description": "Share of total energy consumption from renewable sources.",
        "msci_weight": 8.0,
        "criteria": {"input_type": "numeric", "unit": "%", "min": 0, "max": 100},
        "benchmark": {"industry_median": 18, "unit": "%"},
    },
    {
        "code": "water_conservation_volume",
        "pillar": "E",
        "name": "Water conserved",
        "description": "Volume of water saved or recycled through conservation measures.",
        "msci_weight": 3.0,
        "criteria": {"input_type": "numeric", "unit": "m3"},
        "benchmark": {},
    },
    # =========================================================================
    # SOCIAL
    # =========================================================================
    {
        "code": "community_safety_programs",
        "pillar": "S",
        "name": "Community safety programmes",
        "description": "Programmes protecting the health and safety of surrounding communities.",
        "msci_weight": 5.0,
        "criteria": {"options": _COMMUNITY_PROGRAMMES},
        "benchmark": {"expected": "Regular programmes"},
    },
    {
        "code": "employee_development_initiatives",
        "pillar": "S",
        "name": "Employee development initiatives",
        "description": "Training, upskilling and career development offered to employees.",
        "msci_weight": 6.0,
        "criteria": {"input_type": "text"},
        "benchmark": {},
    },
    {
        "code": "employee_turnover_rate",
        "pillar": "S",
        "name": "Employee turnover rate",
        "description": "Voluntary and involuntary employee turnover for the reporting year.",
        "msci_weight": 5.0,
        "criteria": {"input_type": "numeric", "unit": "%", "min": 0, "max": 100},
        "benchmark": {"industry_median": 12, "unit": "%"},
    },
    {
        "code": "workplace_safety_measures",
        "pillar": "S",
        "name": "Workplace safety management",
        "description": "Occupational health and safety management system in place.",
        "msci_weight": 7.0,
        "criteria": {"options": [
            "ISO 45001 certified",
            "Dedicated safety management system",
            "Legal compliance only",
            "No dedicated system",
        ]},
        "benchmark": {"expected": "ISO 45001 certified"},
    },
    {
        "code": "diversity_inclusion_programs",
        "pillar": "S",
        "name": "Diversity & inclusion",
        "description": "Policies and targets for workforce diversity and inclusion.",
        "msci_weight": 5.0,
        "criteria": {"options": [
            "Clear policy and targets",
            "Policy without specific targets",
            "In development",
            "No dedicated policy",
        ]},
        "benchmark": {"expected": "Clear policy and targets"},
    },
    {
        "code": "social_responsibility_programs",
        "pillar": "S",
        "name": "Social responsibility programmes",
        "description": "Corporate social responsibility activities beyond core operations.",
        "msci_weight": 4.0,
        "criteria": {"options": _COMMUNITY_PROGRAMMES},
        "benchmark": {},
    },
    {
        "code": "community_investment_amount",
        "pillar": "S",
        "name": "Community investment",
        "description": "Amount invested in community programmes during the reporting year.",
        "msci_weight": 3.0,
        "criteria": {"input_type": "numeric", "unit": "THB"},
        "benchmark": {},
    },
    # =========================================================================
    # GOVERNANCE
    # =========================================================================
    {
        "code": "board_independence_percentage",
        "pillar": "G",
        "name": "Board independence",
        "description": "Share of independent directors on the board.",
        "msci_weight": 6.0,
        "criteria": {"input_type": "numeric", "unit": "%", "min": 0, "max": 100},
        "benchmark": {"minimum": 33, "unit": "%"},
    },
    {
        "code": "transparency_reporting_practices",
        "pillar": "G",
        "name": "Sustainability reporting",
        "description": "How regularly sustainability performance is reported.",
        "msci_weight": 4.0,
        "criteria": {"options": [
            "Regular reporting",
            "Reporting as required by law",
            "Partial reporting",
            "No dedicated reporting",
        ]},
        "benchmark": {"expected": "Regular reporting"},
    },
    {
        "code": "ethics_compliance_policies",
        "pillar": "G",
        "name": "Business ethics & compliance",
        "description": "Code of conduct, anti-corruption policy and related training.",
        "msci_weight": 5.0,
        "criteria": {"options": [
            "Policy and training",
            "Policy without training",
            "In development",
            "Legal compliance only",
        ]},
        "benchmark": {"expected": "Policy and training"},
    },
    {
        "code": "risk_management_frameworks",
        "pillar": "G",
        "name": "Risk management framework",
        "description": "Enterprise risk management framework covering ESG risks.",
        "msci_weight": 5.0,
        "criteria": {"options": [
            "Comprehensive risk framework",
            "Basic risk framework",
            "In development",
            "No dedicated framework",
        ]},
        "benchmark": {"expected": "Comprehensive risk framework"},
    },
    {
        "code": "transparency_disclosure_practices",
        "pillar": "G",
        "name": "Information disclosure",
        "description": "Transparency of public disclosure about operations and performance.",
        "msci_weight": 4.0,
        "criteria": {"options": [
            "Transparent disclosure",
            "Disclosure as required by law",
            "Partial disclosure",
            "No dedicated disclosure",
        ]},
        "benchmark": {},
    },
]


def resolve_input_type(criteria):
    """Work out how the form should collect an answer. Returns (input_type, options)."""
    if not isinstance(criteria, dict):
        return "text", []
    if isinstance(criteria.get("options"), list):
        return "dropdown", list(criteria["options"])
    if criteria.get("type") == "numeric" or criteria.get("input_type") == "numeric":
        return "numeric", []
    if criteria.get("type") == "dropdown" or criteria.get("input_type") == "dropdown":
        return "dropdown", list(criteria.get("dropdown_options") or [])
    return "text", []


def load_catalogue(path):
    """Read a key issue catalogue from a JSON file (a list of catalogue entries)."""
    with open(path, encoding="utf-8") as f:
        catalogue = json.load(f)
    if not isinstance(catalogue, list):
        raise ValueError("Key issue file must contain a JSON list")
    for entry in catalogue:
        missing = {"code", "pillar", "name"} - set(entry)
        if missing:
            raise ValueError(f"Key issue entry is missing {', '.join(sorted(missing))}: {entry}")
        if entry["pillar"] not in PILLARS:
            raise ValueError(f"Unknown pillar {entry['pillar']!r} for {entry['code']}")
    return catalogue


def seed_key_issues(catalogue=None):
    """Insert catalogue entries that are not in the database yet. Returns the number added."""
    existing = {code for (code,) in db.session.query(KeyIssue.code).all()}
    added = 0
    for entry in KEY_ISSUES if catalogue is None else catalogue:
        if entry["code"] in existing:
            continue
        standard = MSCIStandard(
            version=entry.get("version", STANDARD_VERSION),
            criteria=dict(entry.get("criteria") or {}, criteria_key=entry["code"]),
            benchmark=entry.get("benchmark") or {},
        )
        db.session.add(standard)
        db.session.flush()
        db.session.add(KeyIssue(
            code=entry["code"],
            pillar=entry["pillar"],
            name=entry["name"],
            description=entry.get("description", ""),
            msci_weight=float(entry.get("msci_weight", 0)),
            standard_id=standard.id,
        ))
        existing.add(entry["code"])
        added += 1
    db.session.commit()
    if added:
        logger.info(f"Seeded {added} key issue(s).")
    return added


def _pillar_order(pillar):
    return PILLARS.index(pillar) if pillar in PILLARS else len(PILLARS)


def serialize_key_issue(issue):
    standard = issue.standard
    criteria = standard.criteria if standard else None
    input_type, options = resolve_input_type(criteria)
    return {
        "issue_id": issue.id,
        "name": issue.name,
        "pillar": issue.pillar,
        "description": issue.description,
        "msci_weight": issue.msci_weight,
        "standard_id": issue.standard_id,
        "criteria_key": (criteria or {}).get("criteria_key", issue.code),
        "input_type": input_type,
        "dropdown_options": options,
        "criteria": criteria,
        "benchmark": standard.benchmark if standard else None,
    }


def list_key_issues():
    """All key issues ordered E, S, G then by id, ready for the API or the form."""
    issues = KeyIssue.query.order_by(KeyIssue.id).all()
    issues.sort(key=lambda i: (_pillar_order(i.pillar), i.id))
    return [serialize_key_issue(i) for i in issues]


def key_issues_by_pillar():
    grouped = {}
    for issue in list_key_issues():
        grouped.setdefault(issue["pillar"], []).append(issue)
    return grouped
