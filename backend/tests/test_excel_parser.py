from openpyxl import Workbook
from io import BytesIO
import json
import pytest
from pydantic import ValidationError

from drivewise.schemas.question_schema import AnswerType, QuestionData
from drivewise.services.excel_service import REQUIRED_COLUMNS, parse_excel


def bytesio_from_workbook(wb: Workbook) -> BytesIO:
    f = BytesIO()
    wb.save(f)
    f.seek(0)
    return f


def test_upload_wrong_file_format():
    # Non-Excel bytes should cause pandas.read_excel to raise an error
    bad_file = BytesIO(b"not-an-excel-file")
    with pytest.raises(Exception):
        parse_excel(bad_file)


def test_missing_columns():
    wb = Workbook()
    ws = wb.active
    ws.append(["original_id"])  # Only 1 column
    f = bytesio_from_workbook(wb)

    with pytest.raises(KeyError):
        parse_excel(f)


def test_valid_excel_upload():
    wb = Workbook()
    ws = wb.active
    ws.append(REQUIRED_COLUMNS)
    ws.append([
        "B-0001",
        "priority",
        "single_choice",
        json.dumps(1),
        "yes",
        "nl-BE",
        "Wie heeft voorrang?",
        "Voorrang van rechts.",
        json.dumps(["Ik", "De fietser", "Niemand"]),
        None,
    ])
    ws.append([
        "B-0002",
        "speed",
        "INPUT",
        50,
        "no",
        "nl-BE",
        "Maximumsnelheid in de bebouwde kom?",
        None,
        None,
        None,
    ])

    f = bytesio_from_workbook(wb)

    result = parse_excel(f)
    assert isinstance(result, list)
    assert len(result) == 2

    q = result[0]
    assert q["original_id"] == "B-0001"
    assert q["answer_type"] == "SINGLE_CHOICE"
    assert q["answer"] == 1
    assert q["is_major_fault"] is True
    assert q["choices"] == [
        {"position": 0, "text": "Ik"},
        {"position": 1, "text": "De fietser"},
        {"position": 2, "text": "Niemand"},
    ]

    q = result[1]
    assert q["answer"] == 50
    assert q["choices"] == []
    assert q["is_major_fault"] is False
    assert q["explanation"] is None

    # the preview is what confirm-import receives back
    parsed = [QuestionData(**row) for row in result]
    assert parsed[0].answer_type == AnswerType.SINGLE_CHOICE
    assert parsed[1].answer_type == AnswerType.INPUT


def test_question_data_checks_answer_shape():
    choices = [{"position": 0, "text": "Ja"}, {"position": 1, "text": "Nee"}]

    with pytest.raises(ValidationError):
        QuestionData(original_id="x", answer_type="YES_NO", answer=5, question_text="Mag dit?", choices=choices)
    with pytest.raises(ValidationError):
        QuestionData(original_id="x", answer_type="ORDER", answer=1, question_text="Volgorde?", choices=choices)
    with pytest.raises(ValidationError):
        QuestionData(original_id="x", answer_type="SINGLE_CHOICE", answer=0, question_text="Welke?")
    with pytest.raises(ValidationError):
        QuestionData(original_id="x", answer_type="INPUT", answer=[1], question_text="Hoeveel?")

    q = QuestionData(original_id="x", answer_type="ORDER", answer=[1, 0], question_text="Volgorde?", choices=choices)
    assert q.answer == [1, 0]


def test_optional_lessons_column():
    wb = Workbook()
    ws = wb.active
    ws.append(REQUIRED_COLUMNS + ["lessons(json)"])
    row = ["B-0003", "signs", "YES_NO", json.dumps(0), None, "nl-BE", "Mag dit?", None, json.dumps(["Ja", "Nee"]), None]
    ws.append(row + [json.dumps([3, 7])])
    ws.append(["B-0004"] + row[1:] + [12])
    ws.append(["B-0005"] + row[1:] + [None])

    result = parse_excel(bytesio_from_workbook(wb))
    assert [q["lessons"] for q in result] == [[3, 7], [12], []]
    assert QuestionData(**result[0]).lessons == [3, 7]

    # files without the column still import
    wb = Workbook()
    ws = wb.active
    ws.append(REQUIRED_COLUMNS)
    ws.append(row)
    assert parse_excel(bytesio_from_workbook(wb))[0]["lessons"] == []
