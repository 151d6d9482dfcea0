"""
Nested - доступ к вложенным деревьям переводов по пути "a.b.c".

Чистые функции без I/O. Порядок ключей словарей сохраняется,
новые ключи добавляются в конец.
"""

from typing import Any, Dict, Iterator, Optional, Tuple, Union

Separator = Union[str, bool, None]


def split_path(path: str, separator: Separator = ".") -> list:
    """Разбивает путь на сегменты. Пустой/False разделитель - плоский ключ."""
    if not separator:
        return [path]
    return path.split(separator)


def get_nested_value(tree: Optional[Dict], path: str,
                     separator: Separator = ".") -> Any:
    """
    Возвращает значение по пути или None.

    Args:
        tree: Дерево переводов
        path: Путь вида "a.b.c"
        separator: Разделитель сегментов (keySeparator)

    Returns:
        Лист, поддерево или None если путь не найден
    """
    node: Any = tree
    for segment in split_path(path, separator):
        if not isinstance(node, dict) or segment not in node:
            return None
        node = node[segment]
    return node


def set_nested_value(tree: Dict, path: str, value: Any,
                     separator: Separator = ".") -> bool:
    """
    Записывает значение по пути, создавая промежуточные словари.

    Returns:
        False если промежуточный сегмент уже занят строкой (конфликт)
    """
    segments = split_path(path, separator)
    node = tree
    for segment in segments[:-1]:
        child = node.get(segment)
        if child is None:
            child = {}
            node[segment] = child
        elif not isinstance(child, dict):
            return False
        node = child

    last = segments[-1]
    if isinstance(node.get(last), dict) and not isinstance(value, dict):
        return False
    node[last] = value
    return True


def delete_nested_value(tree: Dict, path: str,
                        separator: Separator = ".") -> bool:
    """Удаляет лист и подчищает опустевшие родительские словари."""
    segments = split_path(path, separator)
    trail = []
    node: Any = tree
    for segment in segments[:-1]:
        if not isinstance(node, dict) or not isinstance(node.get(segment), dict):
            return False
        trail.append((node, segment))
        node = node[segment]

    if not isinstance(node, dict) or segments[-1] not in node:
        return False
    del node[segments[-1]]

    for parent, segment in reversed(trail):
        if parent[segment]:
            break
        del parent[segment]
    return True


def iter_leaf_paths(tree: Dict, separator: Separator = ".",
                    parent_key: str = "") -> Iterator[Tuple[str, Any]]:
    """Обходит все листья дерева: (путь, значение)."""
    joiner = separator if separator else "."
    for key, value in tree.items():
        new_key = f"{parent_key}{joiner}{key}" if parent_key else key
        if isinstance(value, dict) and separator:
            yield from iter_leaf_paths(value, separator, new_key)
        else:
            yield new_key, value


def merge_trees(base: Dict, overlay: Dict) -> Dict:
    """Глубокое слияние: порядок ключей base сохраняется, новые в конце."""
    result: Dict = {}
    for key, value in base.items():
        result[key] = merge_trees(value, {}) if isinstance(value, dict) else value
    for key, value in overlay.items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = merge_trees(current, value)
        elif isinstance(value, dict):
            result[key] = merge_trees(value, {})
        else:
            result[key] = value
    return result
