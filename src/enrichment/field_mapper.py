from typing import Any, Dict, List, Optional
import logging


class FieldMapper:
    """
    Reads values out of nested records by dotted path.

    Lists met along the way are walked element by element, so
    `resources.ARN` yields the ARN of every entry in `resources`.
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    def extractValues(self, data: Dict[str, Any], fieldPath: str) -> List[Any]:
        values: List[Any] = []
        self._collect(data, fieldPath.split('.'), values)
        return values

    def extractField(self, data: Dict[str, Any], fieldPath: str) -> Optional[Any]:
        value: Any = data
        for key in fieldPath.split('.'):
            if not isinstance(value, dict):
                return None
            value = value.get(key)
            if value is None:
                return None
        return value

    def hasField(self, data: Dict[str, Any], fieldPath: str) -> bool:
        value: Any = data
        for key in fieldPath.split('.'):
            if not isinstance(value, dict) or key not in value:
                return False
            value = value[key]
        return True

    def setField(self, data: Dict[str, Any], fieldPath: str, value: Any) -> None:
        parentPath, _, key = fieldPath.rpartition('.')
        parent = self._parentForWrite(data, parentPath)
        if parent is not None:
            parent[key] = value

    def removeField(self, data: Dict[str, Any], fieldPath: str) -> None:
        parentPath, _, key = fieldPath.rpartition('.')
        parent = self._parentForWrite(data, parentPath)
        if parent is not None:
            parent.pop(key, None)

    def _parentForWrite(self, data: Dict[str, Any], parentPath: str) -> Optional[Dict[str, Any]]:
        target = data
        if not parentPath:
            return target
        for key in parentPath.split('.'):
            child = target.get(key)
            if not isinstance(child, dict):
                return None
            # copy on write so nested dicts of the source record stay untouched
            child = dict(child)
            target[key] = child
            target = child
        return target

    def _collect(self, value: Any, keys: List[str], out: List[Any]) -> None:
        if isinstance(value, list):
            for item in value:
                self._collect(item, keys, out)
            return
        if not keys:
            if value is not None:
                out.append(value)
            return
        if not isinstance(value, dict):
            return
        self._collect(value.get(keys[0]), keys[1:], out)
