"""Custom query definitions and their YAML loader"""
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional
import yaml
from .errors import ConfigurationError
from .schema import QueryShape, infer_query_shape
from logging_config import get_logger


logger = get_logger(__name__)

_METRIC_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


@dataclass(frozen=True)
class CustomQueryDefinition:
    """A user supplied query exported as one metric.

    The first selected column is the value, the remaining columns are labels.
    """
    name: str
    query: str
    help_text: str = ""

    @property
    def help(self) -> str:
        return self.help_text or self.query

    def declared_shape(self) -> QueryShape:
        return infer_query_shape(self.query, self.name)


def parse_custom_queries(document) -> List[CustomQueryDefinition]:
    """Build definitions from a parsed YAML document.

    Accepts ``name: query`` entries or ``name: {query: ..., help: ...}``.
    Every query is checked here so that a bad definition aborts startup.
    """
    if document is None:
        return []
    if not isinstance(document, dict):
        raise ConfigurationError("Custom query file must contain a mapping of metric name to query")

    definitions = []
    for name, entry in document.items():
        name = str(name)
        if not _METRIC_NAME_RE.match(name):
            raise ConfigurationError(f"Invalid custom query name {name!r}")

        if isinstance(entry, str):
            definition = CustomQueryDefinition(name=name, query=entry.strip())
        elif isinstance(entry, dict) and isinstance(entry.get("query"), str):
            definition = CustomQueryDefinition(
                name=name,
                query=entry["query"].strip(),
                help_text=str(entry.get("help", "")),
            )
        else:
            raise ConfigurationError(f"Custom query {name!r} must be a query string or a mapping with a 'query' key")

        shape = definition.declared_shape()
        logger.info("Loaded custom query", query_name=name, labels=list(shape.label_names),
                    metric_type=shape.metric_type.value, event_type="custom_query_loaded")
        definitions.append(definition)

    return definitions


def load_custom_queries(path: Optional[Path]) -> List[CustomQueryDefinition]:
    """Load custom query definitions from a YAML file, an empty list when no path is set"""
    if not path:
        return []

    try:
        with open(path, "r", encoding="utf-8") as f:
            document = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read custom query file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Cannot parse custom query file {path}: {e}") from e

    return parse_custom_queries(document)
