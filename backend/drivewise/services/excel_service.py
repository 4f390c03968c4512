import pandas as pd
import json


REQUIRED_COLUMNS = [
    "original_id",
    "category",
    "answer_type",
    "answer(json)",
    "is_major_fault",
    "locale",
    "question_text",
    "explanation",
    "choices(json)",
    "image_url",
]


def _cell(value, default=None):
    return value if pd.notna(value) else default


def _to_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "y", "x")
    return bool(_cell(value, False))


def parse_excel(file):
    df = pd.read_excel(file)

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        # Raise KeyError so upstream router can return a HTTP 400 with a helpful message
        raise KeyError(missing[0])

    questions = []

    def get_json_value(value, default):
        if not isinstance(value, str):
            # spreadsheet already typed the cell as a number
            if not pd.notna(value):
                return default
            return int(value) if float(value).is_integer() else float(value)
        return json.loads(value) if value.strip() else default

    for _, row in df.iterrows():
        choices = get_json_value(row["choices(json)"], [])
        # a plain list of texts is accepted, positions follow the list order
        if choices and not isinstance(choices[0], dict):
            choices = [{"position": i, "text": text} for i, text in enumerate(choices)]

        # optional column, lesson numbers the question belongs to; a single number is allowed
        lessons = get_json_value(row["lessons(json)"], []) if "lessons(json)" in df.columns else []
        if not isinstance(lessons, list):
            lessons = [lessons]

        q = {
            "original_id": str(row["original_id"]).strip(),
            "category": _cell(row.get("category")),
            "answer_type": str(row["answer_type"]).strip().upper(),
            "answer": get_json_value(row["answer(json)"], None),
            "is_major_fault": _to_bool(row.get("is_major_fault")),
            "locale": _cell(row.get("locale"), "nl-BE"),
            "question_text": _cell(row.get("question_text"), ""),
            "explanation": _cell(row.get("explanation")),
            "choices": choices,
            "image_url": _cell(row.get("image_url")),
            "lessons": lessons,
        }

        questions.append(q)

    return questions
