"""Maps structured portfolio data onto the directory layout the shell shows.

The host hands the terminal a :class:`Portfolio`; :func:`to_snapshot` turns
it into a content snapshot (nested dicts of file contents) that
:func:`termfolio.lib.vfs.build` understands.
"""
from __future__ import annotations

import json
import re
from pathlib import Path
from typing import NotRequired, TypedDict

from termfolio.lib.console import log


class Stat(TypedDict):
    label: str
    value: str


class Link(TypedDict):
    label: str
    url: str


class About(TypedDict):
    name: str
    role: str
    bio: str
    highlights: list[str]
    stats: list[Stat]


class Experience(TypedDict):
    company: str
    role: str
    period: str
    achievements: list[str]
    link: NotRequired[str]


class Project(TypedDict):
    title: str
    description: str
    tech: list[str]
    metrics: list[Stat]
    links: list[Link]


class Skills(TypedDict):
    languages: list[str]
    frameworks: list[str]
    tools: list[str]
    databases: list[str]


class Contact(TypedDict):
    email: str
    github: str
    linkedin: str
    twitter: NotRequired[str]
    resume: str


class Portfolio(TypedDict):
    about: About
    experience: list[Experience]
    projects: list[Project]
    skills: Skills
    contact: Contact


SECTIONS = ("about", "experience", "projects", "skills", "contact")

SAMPLE_PORTFOLIO: Portfolio = {
    "about": {
        "name": "Ada Example",
        "role": "Senior Software Engineer",
        "bio": (
            "Senior Software Engineer with 6+ years of experience building "
            "distributed systems, developer tooling and data pipelines."
        ),
        "highlights": [
            "Led the migration of a monolith to 40+ services with zero downtime",
            "Maintainer of an open source job scheduler used by 2,000+ teams",
            "Cut p99 latency of the search API by 65%",
        ],
        "stats": [
            {"label": "Years Shipping", "value": "6+"},
            {"label": "Services Owned", "value": "40+"},
            {"label": "Uptime", "value": "99.95%"},
        ],
    },
    "experience": [
        {
            "company": "Lighthouse Labs",
            "role": "Staff Engineer",
            "period": "Jan 2023 - Present",
            "achievements": [
                "Designed the event ingestion platform (1B events/day)",
                "Mentored a team of 6 engineers",
            ],
            "link": "https://lighthouse.example.com",
        },
        {
            "company": "Northwind",
            "role": "Software Engineer",
            "period": "Jun 2019 - Dec 2022",
            "achievements": [
                "Built the billing reconciliation service",
                "Introduced property-based testing across the backend",
            ],
            "link": "https://northwind.example.com",
        },
    ],
    "projects": [
        {
            "title": "Cronwheel",
            "description": "A distributed job scheduler with exactly-once execution guarantees.",
            "tech": ["Python", "asyncio", "PostgreSQL", "Redis"],
            "metrics": [
                {"label": "Teams", "value": "2,000+"},
                {"label": "Jobs/day", "value": "12M"},
            ],
            "links": [
                {"label": "GitHub", "url": "https://github.com/ada-example/cronwheel"},
                {"label": "Docs", "url": "https://cronwheel.example.com/docs"},
            ],
        },
        {
            "title": "Lens Search",
            "description": "Typo-tolerant search API for product catalogs.",
            "tech": ["Rust", "Python", "Elasticsearch"],
            "metrics": [{"label": "p99 latency", "value": "-65%"}],
            "links": [{"label": "Demo", "url": "https://lens.example.com"}],
        },
        {
            "title": "Ledger Lint",
            "description": "Static checks for double-entry bookkeeping exports.",
            "tech": ["Python", "pandas"],
            "metrics": [{"label": "Rules", "value": "120"}],
            "links": [{"label": "GitHub", "url": "https://github.com/ada-example/ledger-lint"}],
        },
    ],
    "skills": {
        "languages": ["Python", "Rust", "TypeScript", "SQL"],
        "frameworks": ["FastAPI", "Django", "React", "Textual"],
        "tools": ["Docker", "Kubernetes", "Terraform", "GitHub Actions"],
        "databases": ["PostgreSQL", "Redis", "Elasticsearch"],
    },
    "contact": {
        "email": "ada@example.com",
        "github": "https://github.com/ada-example",
        "linkedin": "https://linkedin.com/in/ada-example",
        "resume": "https://ada.example.com/resume.pdf",
    },
}

EASTER_EGGS = """\
You found the secret directory!

Commands worth trying:
- whoami
- date
- tree /

Keep exploring, there might be more surprises...
"""


def slugify(text: str) -> str:
    """``"Neo - Autonomous ML"`` -> ``"neo-autonomous-ml"``."""
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-") or "untitled"


def _unique(name: str, taken: dict[str, str]) -> str:
    candidate, n = name, 2
    stem, dot, ext = name.rpartition(".")
    while candidate in taken:
        candidate = f"{stem}-{n}{dot}{ext}" if dot else f"{name}-{n}"
        n += 1
    return candidate


# --- Formatters ---

def format_bio(about: About) -> str:
    title = f"{about['name']} - {about['role']}"
    return f"{title}\n{'=' * len(title)}\n\n{about['bio']}\n"


def format_highlights(about: About) -> str:
    lines = ["Career Highlights", "-" * 17]
    lines += [f"{i}. {item}" for i, item in enumerate(about["highlights"], start=1)]
    return "\n".join(lines) + "\n"


def format_stats(about: About) -> str:
    lines = ["Key Stats", "-" * 9]
    lines += [f"• {stat['label']}: {stat['value']}" for stat in about["stats"]]
    return "\n".join(lines) + "\n"


def format_experience(entry: Experience) -> str:
    return json.dumps(entry, indent=2, ensure_ascii=False) + "\n"


def format_project(project: Project) -> str:
    parts = [f"# {project['title']}", "", project["description"], "", "## Metrics", ""]
    parts += [f"- **{m['label']}**: {m['value']}" for m in project["metrics"]]
    parts += ["", "## Tech Stack", "", ", ".join(project["tech"]), "", "## Links", ""]
    parts += [f"- {link['label']}: {link['url']}" for link in project["links"]]
    return "\n".join(parts) + "\n"


def format_skills(title: str, items: list[str]) -> str:
    return f"{title}\n{'-' * len(title)}\n" + "\n".join(f"  • {item}" for item in items) + "\n"


def format_contact(contact: Contact) -> str:
    lines = [
        "Contact Information",
        "===================",
        "",
        f"Email: {contact['email']}",
        f"GitHub: {contact['github']}",
        f"LinkedIn: {contact['linkedin']}",
    ]
    if contact.get("twitter"):
        lines.append(f"Twitter: {contact['twitter']}")
    lines.append(f"Resume: {contact['resume']}")
    return "\n".join(lines) + "\n"


# --- Mapping ---

def to_snapshot(portfolio: Portfolio) -> dict:
    """Lay out ``portfolio`` as nested ``{name: content | {...}}`` dicts."""
    missing = [section for section in SECTIONS if section not in portfolio]
    if missing:
        raise ValueError(f"portfolio is missing sections: {', '.join(missing)}")

    about = portfolio["about"]
    experience: dict[str, str] = {}
    for entry in portfolio["experience"]:
        experience[_unique(f"{slugify(entry['company'])}.json", experience)] = format_experience(entry)
    projects: dict[str, str] = {}
    for project in portfolio["projects"]:
        projects[_unique(f"{slugify(project['title'])}.md", projects)] = format_project(project)
    skills = portfolio["skills"]

    return {
        "about": {
            "bio.txt": format_bio(about),
            "highlights.txt": format_highlights(about),
            "stats.txt": format_stats(about),
        },
        "experience": experience,
        "projects": projects,
        "skills": {
            "languages.txt": format_skills("Languages", skills["languages"]),
            "frameworks.txt": format_skills("Frameworks", skills["frameworks"]),
            "tools.txt": format_skills("Tools & Technologies", skills["tools"]),
            "databases.txt": format_skills("Databases", skills["databases"]),
        },
        "contact": {
            "contact.txt": format_contact(portfolio["contact"]),
        },
        ".secrets": {
            "easter-eggs.txt": EASTER_EGGS,
        },
    }


def load_portfolio(path: str | Path) -> Portfolio:
    """Read a portfolio JSON document from disk."""
    path = Path(path)
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object at the top level")
    log(f"Loaded portfolio content from {path}.", topic="app")
    return data  # validated by to_snapshot
