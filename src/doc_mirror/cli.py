import argparse
import sys
from typing import List, Optional

from doc_mirror.config import CONFIG_FILE, load_config
from doc_mirror.exceptions import ConfigError
from doc_mirror.health import run_health_check
from doc_mirror.logger import LogLevel, logger
from doc_mirror.models import RunResult
from doc_mirror.sync import LoggingReporter, SyncManager

EXIT_OK = 0
EXIT_PARTIAL = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docmirror",
        description="DocMirror: 将 ClickUp 文档树同步到 Dust 数据源",
        formatter_class=argparse.RawTextHelpFormatter,
        epilog="""
示例:
  1. 同步配置中的单个文档 (默认读取 sync_config.json / .env):
     docmirror

  2. 同步指定文档:
     docmirror --doc-id 8cdu22c-13133

  3. 同步工作区内全部文档，只展开一层子页面:
     docmirror --all --max-depth 1

  4. 只列出将要同步的页面，不写入 Dust:
     docmirror --dry-run

  5. 健康检查:
     docmirror --check
"""
    )
    target = parser.add_mutually_exclusive_group()
    target.add_argument("--doc-id", help="要同步的 ClickUp 文档 ID (覆盖 CLICKUP_DOC_ID)")
    target.add_argument("--all", action="store_true", dest="all_docs", help="同步工作区内的全部文档")
    target.add_argument("--root", action="append", dest="roots", metavar="ID",
                        help="显式指定根文档 ID，可重复")
    parser.add_argument("--config", default=CONFIG_FILE, help=f"配置文件路径 (默认: {CONFIG_FILE})")
    parser.add_argument("--max-depth", type=int, help="子页面展开层数 (默认: 不限)")
    parser.add_argument("--batch-size", type=int, help="每批写入的页面数 (默认: 5)")
    parser.add_argument("--dry-run", action="store_true", help="只遍历并列出页面，不写入 Dust")
    parser.add_argument("--check", action="store_true", help="运行健康检查后退出")
    parser.add_argument("--debug", action="store_true", help="输出调试日志")
    return parser


def print_summary(result: RunResult):
    logger.summary_table("📊 同步汇总", {
        "🔎 待同步": result.candidates,
        "✅ 成功": result.succeeded,
        "❌ 失败": result.failed,
        "⏭️ 跳过根文档": len(result.skipped_roots),
    })
    for failure in result.failures:
        logger.error(f"{failure.document_id}: {failure.error}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.debug:
        logger.set_level(LogLevel.DEBUG)

    if args.check:
        return run_health_check(args.config)

    overrides = {
        "clickup_doc_id": args.doc_id,
        "max_depth": args.max_depth,
        "batch_size": args.batch_size,
    }
    if args.all_docs:
        overrides["all_docs"] = True
    if args.dry_run:
        overrides["dry_run"] = True
    if args.roots:
        # explicit roots replace the configured doc id
        overrides["clickup_doc_id"] = args.roots[0]
    if args.doc_id or args.roots:
        # a doc named on the command line wins over all_docs from file or env
        overrides["all_docs"] = False

    try:
        config = load_config(args.config, overrides=overrides)
    except ConfigError as e:
        logger.error(str(e))
        logger.info("运行 docmirror --check 检查配置", icon="💡")
        return EXIT_CONFIG

    manager = SyncManager.from_config(config, reporter=LoggingReporter())
    try:
        result = manager.run(args.roots)
    except KeyboardInterrupt:
        logger.warning("同步已中断")
        return EXIT_PARTIAL

    print_summary(result)
    return EXIT_OK if result.ok else EXIT_PARTIAL


if __name__ == "__main__":
    sys.exit(main())
