"""
DocMirror 健康检查 - Health Check
检查配置、依赖和两端 API 连接是否正常
"""

import importlib
import sys
from typing import List, Optional, Tuple

from doc_mirror.clients import ClickUpClient, DustClient
from doc_mirror.config import CONFIG_FILE, SyncConfig, load_config
from doc_mirror.exceptions import ConfigError, FetchError
from doc_mirror.logger import logger

REQUIRED_PACKAGES = {
    "requests": "requests",
    "dotenv": "python-dotenv",
    "keyring": "keyring",
    "rich": "rich",
}


def check_python_version() -> bool:
    version = sys.version_info
    ok = version >= (3, 8)
    _report("Python 版本", ok, f"{version.major}.{version.minor}.{version.micro}" + ("" if ok else "，需要 3.8+"))
    return ok


def check_dependencies() -> bool:
    all_ok = True
    for module_name, package_name in REQUIRED_PACKAGES.items():
        try:
            importlib.import_module(module_name)
            _report(package_name, True, "已安装")
        except ImportError:
            _report(package_name, False, "未安装")
            all_ok = False
    return all_ok


def check_config(config_path: str) -> Tuple[bool, Optional[SyncConfig]]:
    try:
        config = load_config(config_path)
    except ConfigError as e:
        _report("配置", False, str(e))
        return False, None

    _report("配置", True, "ClickUp 工作区 " + config.clickup_workspace_id)
    target = "全部文档" if config.all_docs else f"文档 {config.clickup_doc_id}"
    _report("同步目标", True, target)
    return True, config


def check_connection(config: SyncConfig) -> bool:
    """Ping both APIs once, without going through the sync throttles."""
    clickup = ClickUpClient(config.clickup_api_key, config.clickup_workspace_id,
                            base_url=config.clickup_base_url, timeout=config.request_timeout)
    dust = DustClient(config.dust_api_key, config.dust_workspace_id, config.dust_vault_id,
                      config.dust_datasource_id, base_url=config.dust_base_url,
                      timeout=config.request_timeout)

    all_ok = True
    for label, client in (("ClickUp API", clickup), ("Dust API", dust)):
        try:
            status = client.ping()
        except FetchError as e:
            _report(label, False, str(e))
            all_ok = False
            continue
        finally:
            client.close()
        ok = status < 400
        _report(label, ok, f"HTTP {status}")
        all_ok = all_ok and ok
    return all_ok


def _report(name: str, ok: bool, message: str = ""):
    suffix = f" ({message})" if message else ""
    if ok:
        logger.success(f"{name}{suffix}")
    else:
        logger.error(f"{name}{suffix}")


def run_health_check(config_path: str = CONFIG_FILE) -> int:
    """Run every check; returns a process exit code (0 when all pass)."""
    logger.header("DocMirror 健康检查", icon="🩺")

    results: List[Tuple[str, bool]] = []
    logger.rule("1. Python 环境")
    results.append(("Python 版本", check_python_version()))
    logger.rule("2. 依赖包")
    results.append(("依赖包", check_dependencies()))
    logger.rule("3. 配置")
    config_ok, config = check_config(config_path)
    results.append(("配置", config_ok))
    logger.rule("4. API 连接")
    if config is not None:
        results.append(("API 连接", check_connection(config)))
    else:
        _report("API 连接", False, "配置无效，跳过")
        results.append(("API 连接", False))

    logger.summary_table("检查总结", {name: ("✅" if ok else "❌") for name, ok in results})
    all_passed = all(ok for _, ok in results)
    if all_passed:
        logger.success("所有检查通过！可以运行 docmirror 开始同步了。", icon="🎉")
    else:
        logger.warning("有一些问题需要解决。")
    return 0 if all_passed else 1
