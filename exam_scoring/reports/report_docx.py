from typing import Any, Dict, Optional
import os

from docx import Document

from exam_scoring.core.config import settings


def generate_report_docx(report: Dict[str, Any], file_path: Optional[str] = None) -> str:
    if file_path is None:
        file_path = os.path.join(settings.REPORTS_DIR, f"exam_report_{report['report_id']}.docx")

    directory = os.path.dirname(file_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    doc = Document()

    # Title
    doc.add_heading(report.get("exam_title") or "Exam Report", level=1)

    candidate = report.get("candidate") or {}
    if candidate.get("name") or candidate.get("email"):
        doc.add_paragraph(
            f"Candidate: {candidate.get('name') or ''} {candidate.get('email') or ''}".strip()
        )

    # Summary
    doc.add_heading("Summary", level=2)
    for line in report["summary"]:
        doc.add_paragraph(line)

    # Scores
    doc.add_heading("Overall Score", level=2)
    scores = report["scores"]
    doc.add_paragraph(
        f"Score: {scores['total_score']:g} / {scores['max_score']:g} "
        f"({scores['percentage']}%)"
    )
    doc.add_paragraph(f"Grade: {scores['grade']}")
    doc.add_paragraph(f"Status: {scores['status']}")

    # Per question type
    doc.add_heading("By Question Type", level=2)
    for question_type, bucket in report["type_summary"].items():
        doc.add_paragraph(
            f"{question_type}: {bucket['correct']}/{bucket['answered']} correct, "
            f"{bucket['score']:g}/{bucket['max_score']:g} points",
            style="List Bullet",
        )

    # Per question
    doc.add_heading("Question Breakdown", level=2)
    table = doc.add_table(rows=1, cols=4)
    table.style = "Table Grid"
    header = table.rows[0].cells
    header[0].text = "Question"
    header[1].text = "Type"
    header[2].text = "Score"
    header[3].text = "Correct"

    for row in report["question_breakdown"]:
        cells = table.add_row().cells
        cells[0].text = row.get("title") or str(row["question_id"])
        cells[1].text = row["type"]
        cells[2].text = f"{row['score']:g} / {row['max_score']:g}"
        cells[3].text = "Yes" if row["is_correct"] else "No"

    doc.add_paragraph(f"Engine version: {report.get('engine_version')}")

    doc.save(file_path)
    return file_path
