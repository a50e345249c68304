"""Prometheus text exposition rendering."""
from typing import Iterable, List, TextIO

from prometheus_client.utils import floatToGoString

from prom_sink.store import LabelSet, MetricFamily, SampleStore

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


def escape_label_value(value: str) -> str:
    """Escape backslash, double quote and newline in a label value."""
    return value.replace("\\", "\\\\").replace("\"", "\\\"").replace("\n", "\\n")


def format_labels(labels: LabelSet) -> str:
    if not labels:
        return ""
    pairs = ",".join(f'{k}="{escape_label_value(v)}"' for k, v in labels)
    return f"{{{pairs}}}"


def render(families: Iterable[MetricFamily], include_type: bool = True) -> str:
    """
    Render metric families in the Prometheus text format.

    Args:
        families: Families in output order, usually from SampleStore.snapshot()
        include_type: Emit a ``# TYPE`` line before each family's samples

    Returns:
        Exposition text, empty when there is nothing to report
    """
    lines: List[str] = []

    for family in families:
        if not family.samples:
            continue
        if include_type:
            lines.append(f"# TYPE {family.name} {family.kind.value}")
        for sample in family.samples.values():
            lines.append(
                f"{family.name}{format_labels(sample.labels)} {floatToGoString(sample.value)}"
            )

    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def write_metrics(store: SampleStore, stream: TextIO, include_type: bool = True) -> int:
    """
    Write the whole store to a text stream.

    The text is rendered completely before the first write so a rendering
    problem never leaves partial output behind.

    Returns:
        Number of characters written
    """
    text = render(store.snapshot(), include_type=include_type)
    stream.write(text)
    return len(text)
