"""
Sync Reporter Module

Diagnostic hooks called by the sync pipeline. The pipeline never reads
anything back from a reporter, so swapping or silencing it does not change
what gets synced.
"""

from typing import List, Optional

from doc_mirror.logger import Logger, logger as default_logger
from doc_mirror.models import DestinationEnvelope, DocumentNode, RootRef, RunResult


class SyncReporter:
    """No-op observer. Subclass and override the hooks you care about."""

    def run_started(self, roots: List[RootRef]):
        pass

    def root_started(self, root: RootRef):
        pass

    def root_skipped(self, root: RootRef, error: BaseException):
        pass

    def root_finished(self, root: RootRef, result: RunResult):
        pass

    def fetch_retry(self, node_id: str, attempt: int, max_attempts: int, error: BaseException, delay: float):
        pass

    def subtree_missing(self, node_id: str):
        pass

    def subtree_degraded(self, node: DocumentNode, error: BaseException):
        pass

    def duplicate_node(self, node_id: str):
        pass

    def candidates_found(self, root: Optional[RootRef], count: int):
        pass

    def batch_started(self, index: int, total: int, size: int):
        pass

    def upserted(self, envelope: DestinationEnvelope, dry_run: bool = False):
        pass

    def upsert_failed(self, document_id: str, error: BaseException):
        pass

    def run_finished(self, result: RunResult):
        pass


class LoggingReporter(SyncReporter):
    """Reports progress through the rich console logger."""

    def __init__(self, log: Optional[Logger] = None):
        self.log = log or default_logger

    def run_started(self, roots):
        self.log.header(f"开始同步 {len(roots)} 个根文档", icon="🚀")

    def root_started(self, root):
        label = f"{root.title} ({root.id})" if root.title else root.id
        self.log.rule(f"📄 {label}")

    def root_skipped(self, root, error):
        self.log.error(f"根文档 {root.id} 获取失败，已跳过: {error}")

    def root_finished(self, root, result):
        self.log.info(f"根文档 {root.id}: 成功 {result.succeeded}/{result.candidates}", icon="📊")

    def fetch_retry(self, node_id, attempt, max_attempts, error, delay):
        if attempt >= max_attempts:
            self.log.error(f"获取 {node_id} 的子页面失败，已达最大重试次数 ({max_attempts}): {error}")
        else:
            self.log.warning(f"第 {attempt}/{max_attempts} 次获取 {node_id} 失败: {error}，{delay:.1f}s 后重试")

    def subtree_missing(self, node_id):
        self.log.debug(f"{node_id} 没有子页面 (404)")

    def subtree_degraded(self, node, error):
        self.log.warning(f"无法获取页面 {node.id} ({node.title}) 的子页面，按空处理: {error}")

    def duplicate_node(self, node_id):
        self.log.warning(f"页面 {node_id} 重复出现，已忽略")

    def candidates_found(self, root, count):
        self.log.info(f"待同步页面: {count}", icon="🔎")

    def batch_started(self, index, total, size):
        self.log.info(f"处理批次 {index}/{total} ({size} 个页面)", icon="📦")

    def upserted(self, envelope, dry_run=False):
        if dry_run:
            self.log.info(f"[dry-run] {envelope.document_id} <- {envelope.source_url}", icon="📝")
        else:
            self.log.success(f"已写入 '{envelope.document_id}' {envelope.source_url}")

    def upsert_failed(self, document_id, error):
        self.log.error(f"写入 '{document_id}' 失败: {error}")

    def run_finished(self, result):
        if result.ok:
            self.log.success(str(result))
        else:
            self.log.warning(str(result))
