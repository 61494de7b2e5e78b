import json
from pathlib import Path

from src.pipeline.sink import DirectorySink, LoggingSink, PayloadSink


def test_logging_sink_counts_batches():
    sink = LoggingSink()
    assert isinstance(sink, PayloadSink)

    sink.deliver('[{"id":"1","title":"t","description":"d"}]')
    sink.deliver("[]")

    assert sink.batches_received == 2


def test_directory_sink_writes_numbered_files(tmp_path: Path):
    """
    DirectorySink пишет каждый payload в отдельный файл
    batch_0001.json, batch_0002.json, ... в порядке доставки.
    """
    out_dir = tmp_path / "out"
    sink = DirectorySink(out_dir)

    first = '[{"id":"1","title":"Ёлка","description":"d"}]'
    second = '[{"id":"2","title":"t","description":"d"}]'
    sink.deliver(first)
    sink.deliver(second)

    assert sorted(p.name for p in out_dir.iterdir()) == ["batch_0001.json", "batch_0002.json"]
    assert (out_dir / "batch_0001.json").read_text(encoding="utf-8") == first
    assert json.loads((out_dir / "batch_0002.json").read_text(encoding="utf-8"))[0]["id"] == "2"
    assert sink.batches_written == 2
