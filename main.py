# main.py

import argparse
import asyncio
import logging

# 从项目结构中导入模块
import config # 导入 config.py
from controller.hub import HubController, EXPORT_KINDS # 从 controller/hub.py 导入
from models.app_state import ALL_TYPES
from models.link_model import LinkType
from scraper.discovery import GeminiClient # 从 scraper/discovery.py 导入
from store.link_store import JsonFileStore # 从 store/link_store.py 导入


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="VPN 订阅链接聚合与检测工具")
    parser.add_argument('--store', default=config.STORE_FILE, help="链接池 JSON 文件路径")
    parser.add_argument('--verbose', action='store_true', help="输出调试日志")
    subparsers = parser.add_subparsers(dest='command', required=True)

    subparsers.add_parser('start', help="继续检测未完成的链接，链接池为空时自动同步")
    subparsers.add_parser('sync', help="AI 搜索新链接并检测")

    validate_parser = subparsers.add_parser('validate', help="检测链接池中的链接")
    validate_parser.add_argument('--all', action='store_true', help="重新检测全部链接，而不只是检测中的链接")

    list_parser = subparsers.add_parser('list', help="列出链接")
    list_parser.add_argument('--search', default="", help="按标题或来源搜索")
    list_parser.add_argument('--type', default=ALL_TYPES,
                             choices=[ALL_TYPES, LinkType.CLASH.value, LinkType.V2.value])
    list_parser.add_argument('--fast', action='store_true', help="只显示有效的极速节点")

    export_parser = subparsers.add_parser('export', help="导出链接")
    export_parser.add_argument('kind', choices=EXPORT_KINDS)
    export_parser.add_argument('--output-dir', default=config.OUTPUT_DIR)
    export_parser.add_argument('--fast', dest='only_fast', action=argparse.BooleanOptionalAction,
                               default=True, help="只导出极速节点（默认开启）")

    subparsers.add_parser('summary', help="AI 简评当前节点池")
    subparsers.add_parser('stats', help="显示统计信息")
    return parser


async def main(argv=None):
    """
    主异步函数，根据子命令运行同步、检测、列出或导出的流程。
    """
    args = build_arg_parser().parse_args(argv)

    # 配置日志
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    hub = HubController(JsonFileStore(args.store), GeminiClient())
    loaded = hub.load()

    if args.command == 'start':
        await hub.start(loaded)
    elif args.command == 'sync':
        if not hub.has_api_key:
            logging.error("API_KEY 未配置，AI 抓取功能已禁用。")
            return 1
        new_links = await hub.sync()
        logging.info(f"本次新增 {len(new_links)} 个链接。{hub.state.sync_progress}")
    elif args.command == 'validate':
        await hub.validate(include_all=args.all)
    elif args.command == 'list':
        hub.state.search_term = args.search
        hub.state.active_filter = args.type
        hub.state.only_fast = args.fast
        for link in hub.state.filtered_links():
            ping = f"{link.ping}ms" if link.ping is not None else "-"
            print(f"[{link.type.value}] {link.status.value} {ping:>7} {link.title} ({link.source})\n    {link.url}")
    elif args.command == 'export':
        path = hub.export(args.kind, only_fast=args.only_fast, output_dir=args.output_dir)
        if path is None:
            return 1
        print(path)
    elif args.command == 'summary':
        print(await hub.summary())
    elif args.command == 'stats':
        stats = hub.state.stats()
        print(f"总库: {stats['total']}  活跃: {stats['active']}  极速: {stats['fast']}  延迟: {stats['avg_ping']}ms")
    return 0


def run():
    """命令行入口。"""
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    run()
