"""HTML rendering of a stored Lighthouse report."""

from typing import Any, Dict, List

from jinja2 import BaseLoader, Environment, select_autoescape

from audits.models import Audit, AuditStatus

env = Environment(loader=BaseLoader(), autoescape=select_autoescape(["html", "xml"]))

REPORT_TEMPLATE = r"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>Lighthouse Report - {{ audit.url }}</title>
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <style>
    body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif; margin: 2rem; color: #212121; }
    .meta { color: #616161; font-size: 0.9rem; }
    .categories { display: flex; flex-wrap: wrap; gap: 1.5rem; margin: 1.5rem 0; }
    .gauge { text-align: center; min-width: 7rem; }
    .score { font-size: 2rem; font-weight: 600; }
    .pass { color: #0c6; } .average { color: #fa3; } .fail { color: #f33; } .na { color: #9e9e9e; }
    table { border-collapse: collapse; width: 100%; margin-bottom: 2rem; }
    th, td { text-align: left; padding: 0.4rem 0.6rem; border-bottom: 1px solid #eee; }
  </style>
</head>
<body>
  <h1>{{ audit.url }}</h1>
  <p class="meta">
    Status: <strong>{{ audit.status.value }}</strong>
    &middot; Started {{ audit.time_created.isoformat() }}
    {% if audit.time_completed %}&middot; Finished {{ audit.time_completed.isoformat() }}{% endif %}
    {% if lighthouse_version %}&middot; Lighthouse {{ lighthouse_version }}{% endif %}
  </p>
  {% if audit.status.value == "RUNNING" %}
    <p>This audit is still running. Reload the page to check again.</p>
  {% elif audit.status.value == "FAILED" %}
    <p>This audit failed and has no report.</p>
  {% else %}
    <div class="categories">
      {% for category in categories %}
        <div class="gauge">
          <div class="score {{ category.band }}">{{ category.display_score }}</div>
          <div>{{ category.title }}</div>
        </div>
      {% endfor %}
    </div>
    {% for category in categories %}
      <h2>{{ category.title }}</h2>
      <table>
        <thead><tr><th>Audit</th><th>Score</th><th>Value</th></tr></thead>
        <tbody>
        {% for row in category.audits %}
          <tr>
            <td>{{ row.title }}</td>
            <td class="{{ row.band }}">{{ row.display_score }}</td>
            <td>{{ row.display_value }}</td>
          </tr>
        {% endfor %}
        </tbody>
      </table>
    {% endfor %}
  {% endif %}
</body>
</html>
"""


def _score_band(score: Any) -> str:
    if not isinstance(score, (int, float)):
        return "na"
    if score >= 0.9:
        return "pass"
    if score >= 0.5:
        return "average"
    return "fail"


def _display_score(score: Any) -> str:
    if not isinstance(score, (int, float)):
        return "-"
    return str(round(score * 100))


def _category_rows(report: Dict[str, Any]) -> List[Dict[str, Any]]:
    audits = report.get("audits") or {}
    rows = []
    for key, category in (report.get("categories") or {}).items():
        score = category.get("score")
        audit_rows = []
        for ref in category.get("auditRefs") or []:
            result = audits.get(ref.get("id"), {})
            audit_rows.append({
                "title": result.get("title", ref.get("id")),
                "band": _score_band(result.get("score")),
                "display_score": _display_score(result.get("score")),
                "display_value": result.get("displayValue", ""),
            })
        rows.append({
            "title": category.get("title", key),
            "band": _score_band(score),
            "display_score": _display_score(score),
            "audits": audit_rows,
        })
    return rows


def render_report_html(audit: Audit) -> str:
    report = audit.report if audit.status == AuditStatus.COMPLETED else {}
    template = env.from_string(REPORT_TEMPLATE)
    return template.render(
        audit=audit,
        categories=_category_rows(report or {}),
        lighthouse_version=(report or {}).get("lighthouseVersion"),
    )
