from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from sku_reconcile.errors import ReconcileError
from sku_reconcile.exporter import export_filename
from sku_reconcile.io_utils import write_export
from sku_reconcile.pipeline import ReconcileOptions, reconcile_paths
from sku_reconcile.progress import Stage
from sku_reconcile.schema import DECODE_CHUNK_SIZE, DEFAULT_ENCODING, INDEX_CHUNK_SIZE, JOIN_CHUNK_SIZE

STAGE_LABELS = {
    Stage.DECODING_WEB: "导入WEB",
    Stage.DECODING_ACCOUNTING: "导入QBO",
    Stage.BUILDING_INDEX: "构建索引",
    Stage.JOINING: "整合中",
    Stage.DONE: "完成",
}


class ConsoleSink:
    """Print one line per reported percentage change."""

    def __init__(self, stream=None) -> None:
        self._stream = stream or sys.stderr
        self._last: tuple[Stage, int] | None = None

    def progress(self, stage: Stage, percentage: int) -> None:
        if self._last == (stage, percentage):
            return
        self._last = (stage, percentage)
        print(f"{STAGE_LABELS.get(stage, stage.value)}... ({percentage}%)", file=self._stream)

    def status(self, message: str) -> None:
        print(message, file=self._stream)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="按 SKU 整合 WEB 销售导出与 QBO 单据导出，并生成对账结果文件。")
    parser.add_argument("--web-file", type=Path, required=True, help="WEB 导出文件（.csv/.tsv/.txt/.xlsx）。")
    parser.add_argument("--qbo-file", type=Path, required=True, help="QBO 单据导出文件（.csv/.tsv/.txt/.xlsx）。")
    parser.add_argument(
        "--output",
        type=Path,
        help="结果文件路径，按后缀选择 .csv 或 .xlsx（默认: reconciliation_export_<日期>.xlsx）。",
    )
    parser.add_argument("--delimiter", help="文本文件分隔符，缺省时自动识别（, ; 或制表符）。")
    parser.add_argument("--encoding", default=DEFAULT_ENCODING, help=f"文本文件编码（默认: {DEFAULT_ENCODING}）。")
    parser.add_argument("--decode-chunk-size", type=int, default=DECODE_CHUNK_SIZE, help="解析阶段每批行数。")
    parser.add_argument("--index-chunk-size", type=int, default=INDEX_CHUNK_SIZE, help="构建索引每批行数。")
    parser.add_argument("--join-chunk-size", type=int, default=JOIN_CHUNK_SIZE, help="整合阶段每批行数。")
    parser.add_argument("--verbose", action="store_true", help="输出调试日志。")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    options = ReconcileOptions(
        decode_chunk_size=args.decode_chunk_size,
        index_chunk_size=args.index_chunk_size,
        join_chunk_size=args.join_chunk_size,
        delimiter=args.delimiter,
        encoding=args.encoding,
    )
    output = args.output or Path(export_filename(".xlsx"))

    try:
        result = reconcile_paths(args.web_file, args.qbo_file, options=options, sink=ConsoleSink())
        for note in result.notes:
            print(note)
        if not result.records:
            print("没有可导出的数据。")
            return 1
        write_export(output, result.records)
    except (ReconcileError, FileNotFoundError) as exc:
        print(f"解析文件失败: {exc}", file=sys.stderr)
        return 1

    print("=== 整合完成 ===")
    print(f"WEB {result.web_count} 行，QBO {result.accounting_count} 行，匹配 {len(result.records)} 条。")
    print(f"输出文件: {output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
