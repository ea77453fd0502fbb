from dataclasses import dataclass
from typing import List


FieldID = int


@dataclass(frozen=True)
class FieldMeta:
    nameJSON: str
    name: str
    description: str

    def missingAttributes(self) -> List[str]:
        return [attr for attr in ('nameJSON', 'name', 'description') if not getattr(self, attr)]
