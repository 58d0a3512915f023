"""Export adapters for the current analysis: JSON dump and standalone HTML."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlsplit

from jinja2 import BaseLoader, Environment, select_autoescape

from app.clients.gemini import GeneratedImage
from app.schemas.analysis import PolicyAnalysis

ENV = Environment(
    loader=BaseLoader(),
    autoescape=select_autoescape(default_for_string=True, default=True),
    trim_blocks=True,
    lstrip_blocks=True,
)


def web_href(uri: Optional[str]) -> str:
    """Return ``uri`` when it is an http(s) link, otherwise an empty string."""
    if not uri:
        return ""
    parts = urlsplit(uri.strip())
    if parts.scheme.lower() not in {"http", "https"} or not parts.netloc:
        return ""
    return uri.strip()


ENV.filters["web_href"] = web_href


REPORT_TEMPLATE = ENV.from_string(
    """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{ analysis.title }} - Civic Architect Report</title>
    <style>
        body { font-family: 'Inter', Helvetica, Arial, sans-serif; margin: 0; padding: 0; background: white; color: black; }
        @media print {
            @page { margin: 1.5cm; size: auto; }
            * { -webkit-print-color-adjust: exact !important; print-color-adjust: exact !important; }
            .no-break { page-break-inside: avoid; }
            .page-break { page-break-before: always; }
        }
        .report-container { max-width: 900px; margin: 0 auto; padding: 2rem; }
        .meta { color: #64748b; font-size: 0.85rem; }
        .badge { display: inline-block; padding: 0 0.5rem; border-radius: 999px; border: 1px solid #cbd5e1; font-size: 0.75rem; }
        table { border-collapse: collapse; width: 100%; }
        td, th { border-bottom: 1px solid #e2e8f0; padding: 0.4rem; text-align: left; vertical-align: top; }
        img { max-width: 100%; height: auto; border-radius: 0.5rem; }
    </style>
</head>
<body>
<div class="report-container">
    <p class="meta">Policy Analysis &middot; {{ analysis.created_at.strftime("%Y-%m-%d") }}</p>
    <h1>{{ analysis.title }}</h1>
    <p class="meta">Input: {{ analysis.raw_input }}</p>
    {% if image %}
    <img src="{{ image.data_uri }}" alt="Future state visualization">
    {% endif %}

    <section class="no-break">
        <h2>Executive Summary</h2>
        <p>{{ analysis.executive_summary }}</p>
    </section>

    <section class="no-break">
        <h2>Diagnosis</h2>
        <p><strong>Root cause:</strong> {{ analysis.diagnosis.root_cause }}</p>
        {% if analysis.diagnosis.symptoms %}
        <ul>
        {% for symptom in analysis.diagnosis.symptoms %}
            <li>{{ symptom }}</li>
        {% endfor %}
        </ul>
        {% endif %}
        {% for precedent in analysis.diagnosis.historical_precedents %}
        <p><strong>{{ precedent.case_name }}</strong> <span class="badge">{{ precedent.outcome }}</span><br>{{ precedent.relevance }}</p>
        {% endfor %}
    </section>

    {% if analysis.evidence_analysis %}
    <section class="no-break">
        <h2>Evidence Audit ({{ analysis.evidence_analysis.media_type }})</h2>
        <p>{{ analysis.evidence_analysis.visual_context }}</p>
        <ul>
        {% for risk in analysis.evidence_analysis.detected_risks %}
            <li>{{ risk }}</li>
        {% endfor %}
        {% for pattern in analysis.evidence_analysis.behavioral_patterns or [] %}
            <li>{{ pattern }}</li>
        {% endfor %}
        </ul>
    </section>
    {% endif %}

    <section class="page-break">
        <h2>Blueprint</h2>
        <h3>Government</h3>
        <ul>
        {% for change in analysis.blueprint.government.policy_changes %}
            <li>{{ change }}</li>
        {% endfor %}
        {% for item in analysis.blueprint.government.infrastructure %}
            <li>{{ item }}</li>
        {% endfor %}
        </ul>
        <p><strong>Enforcement:</strong> {{ analysis.blueprint.government.enforcement }}</p>
        <h3>Society</h3>
        <p>{{ analysis.blueprint.society.ngo_role }}</p>
        <ul>
        {% for event in analysis.blueprint.society.mobilization_events %}
            <li>{{ event }}</li>
        {% endfor %}
        </ul>
        <h3>Individual</h3>
        <ul>
        {% for action in analysis.blueprint.individual.daily_actions %}
            <li>{{ action }}</li>
        {% endfor %}
        </ul>
        <p><strong>Incentives:</strong> {{ analysis.blueprint.individual.incentives }}</p>
    </section>

    <section class="no-break">
        <h2>Shadow Timeline</h2>
        <table>
            <tr><th>Year</th><th>Scenario</th><th>Impact</th><th>Risk</th></tr>
            {% for event in analysis.shadow_timeline %}
            <tr>
                <td>+{{ event.year_offset }}</td>
                <td>{{ event.scenario_description }}</td>
                <td>{{ event.impact_type }}</td>
                <td>{{ event.risk_level }}</td>
            </tr>
            {% endfor %}
        </table>
    </section>

    <section class="no-break">
        <h2>Viability</h2>
        <p><span class="badge">{{ analysis.viability.cost_band }}</span> Success probability {{ analysis.viability.success_probability }}%</p>
        <p>{{ analysis.viability.cost_reasoning }}</p>
        <ul>
        {% for factor in analysis.viability.success_factors %}
            <li>{{ factor }}</li>
        {% endfor %}
        </ul>
    </section>

    <section class="page-break">
        <h2>Stakeholders</h2>
        {% for stakeholder in analysis.stakeholders %}
        <div class="no-break">
            <h3>{{ stakeholder.group }} <span class="badge">{{ stakeholder.sentiment }}</span> <span class="meta">influence {{ stakeholder.influence }}/100</span></h3>
            <p>&ldquo;{{ stakeholder.concern }}&rdquo;</p>
            <ul>
            {% for action in stakeholder.required_actions %}
                <li>{{ action }}</li>
            {% endfor %}
            </ul>
        </div>
        {% endfor %}
    </section>

    {% if analysis.research_papers %}
    <section class="no-break">
        <h2>Research</h2>
        <ul>
        {% for paper in analysis.research_papers %}
            <li>{% if paper.uri|web_href %}<a href="{{ paper.uri|web_href }}">{{ paper.title }}</a>{% else %}{{ paper.title }}{% endif %} &middot; {{ paper.institution }}, {{ paper.year }}<br>{{ paper.relevance }}</li>
        {% endfor %}
        </ul>
    </section>
    {% endif %}

    {% if analysis.news_articles %}
    <section class="no-break">
        <h2>News</h2>
        <ul>
        {% for article in analysis.news_articles %}
            <li>{% if article.uri|web_href %}<a href="{{ article.uri|web_href }}">{{ article.title }}</a>{% else %}{{ article.title }}{% endif %} &middot; {{ article.source }}, {{ article.date }}<br>{{ article.description }}</li>
        {% endfor %}
        </ul>
    </section>
    {% endif %}

    {% if analysis.sources %}
    <section class="no-break">
        <h2>Sources</h2>
        <ol>
        {% for source in analysis.sources %}
            <li>{% if source.uri|web_href %}<a href="{{ source.uri|web_href }}">{{ source.title or source.uri }}</a>{% else %}{{ source.title or source.uri }}{% endif %}</li>
        {% endfor %}
        </ol>
    </section>
    {% endif %}
</div>
<script>
    window.onload = () => {
        setTimeout(() => {
            try { window.print(); } catch (e) {}
        }, 500);
    };
</script>
</body>
</html>
"""
)

_WHITESPACE = re.compile(r"\s+")
_UNSAFE = re.compile(r"[^a-z0-9._-]")


def export_json(analysis: PolicyAnalysis) -> str:
    """Pretty-printed camelCase JSON, suitable for copy or download."""
    return analysis.model_dump_json(by_alias=True, indent=2)


def load_json(text: str) -> PolicyAnalysis:
    return PolicyAnalysis.model_validate_json(text)


def export_html(
    analysis: PolicyAnalysis, image: Optional[GeneratedImage] = None
) -> str:
    """Render a self-contained report document for offline viewing or printing."""
    return REPORT_TEMPLATE.render(analysis=analysis, image=image)


def report_filename(analysis: PolicyAnalysis, extension: str = "html") -> str:
    slug = _WHITESPACE.sub("-", analysis.title.strip().lower())
    slug = _UNSAFE.sub("", slug) or "analysis"
    return f"{slug}-report.{extension}"


__all__ = ["export_html", "export_json", "load_json", "report_filename", "web_href"]
