from .question_schema import CamelModel


class LocaleRead(CamelModel):
    code: str
    name: str
    is_default: bool = False
