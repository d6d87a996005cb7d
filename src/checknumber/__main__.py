"""CLI 入口模块 -- python -m checknumber <command>

支持的命令：
  run     提交号码并等待核验结果
  status  查询一次任务状态

退出码：0 完成；1 任务失败或取消；2 参数或配置错误
"""

import argparse
import asyncio
import sys
from pathlib import Path

from pydantic import SecretStr, ValidationError

from .client import JobClient
from .config import CheckerConfig, load_checker_config
from .exceptions import CheckerError
from .inputs import parse_numbers, read_numbers
from .logging_config import setup_logging
from .models import Completed

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m checknumber",
        description="checknumber.ai WhatsApp 号码批量核验客户端",
        epilog="结果状态值: yes - 存在 WhatsApp 账户; no - 该号码没有关联 WhatsApp 账户",
    )
    parser.add_argument("-k", "--api-key", help="API key（默认读取 WHATSAPP_API_KEY）")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="日志级别（默认读取 CHECKNUMBER_LOG_LEVEL，否则 INFO）",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="提交号码并等待核验结果")
    run.add_argument("numbers", nargs="*", help="待核验号码")
    source = run.add_mutually_exclusive_group()
    source.add_argument("-f", "--file", type=Path, help="原样上传的号码文件（每行一个号码）")
    source.add_argument("--stdin", action="store_true", help="从标准输入读取号码")
    run.add_argument("-o", "--output", help="结果文件保存路径（默认 whatsapp_results.xlsx）")
    run.add_argument("-i", "--interval", type=float, help="轮询间隔（秒，默认 5）")
    run.add_argument("--deadline", type=float, help="整体截止时间（秒），超时后取消")
    run.add_argument("--no-download", action="store_true", help="任务完成后不下载结果文件")

    status = sub.add_parser("status", help="查询一次任务状态")
    status.add_argument("task_id", help="任务 ID")
    status.add_argument("-u", "--user-id", required=True, help="提交账户 ID")

    return parser


def _resolve_config(args: argparse.Namespace) -> CheckerConfig:
    """命令行参数覆盖环境变量配置"""
    config = load_checker_config()
    updates: dict = {}
    if args.api_key:
        updates["api_key"] = SecretStr(args.api_key)
    if getattr(args, "output", None):
        updates["output_path"] = args.output
    if getattr(args, "interval", None) is not None:
        updates["poll_interval_s"] = args.interval
    if not updates:
        return config
    # model_copy 不做校验，这里重新构造以校验命令行参数
    return CheckerConfig(**{**config.model_dump(), **updates})


async def run_command(args: argparse.Namespace, config: CheckerConfig) -> int:
    """执行 run 命令"""
    if args.file is not None and not args.file.is_file():
        print(f"文件不存在: {args.file}", file=sys.stderr)
        return EXIT_USAGE

    numbers = parse_numbers(sys.stdin) if args.stdin else parse_numbers(args.numbers)
    if args.file is None and not numbers:
        print("请提供待核验号码，或使用 --file / --stdin", file=sys.stderr)
        return EXIT_USAGE
    if args.file is not None and numbers:
        print("--file 与号码参数不能同时使用", file=sys.stderr)
        return EXIT_USAGE
    if args.file is not None and not read_numbers(args.file):
        print(f"文件中没有号码: {args.file}", file=sys.stderr)
        return EXIT_USAGE

    download = not args.no_download

    async with JobClient.from_config(config) as client:
        if args.file is not None:
            outcome = await client.run_file(
                args.file,
                interval=config.poll_interval_s,
                output=config.output_path,
                deadline_s=args.deadline,
                download=download,
            )
        else:
            outcome = await client.run(
                numbers,
                interval=config.poll_interval_s,
                output=config.output_path,
                deadline_s=args.deadline,
                download=download,
            )

    if isinstance(outcome, Completed):
        task = outcome.task
        print(f"任务完成: {task.task_id}")
        print(f"总数: {task.total}  成功: {task.success}  失败: {task.failure}")
        if outcome.artifact_path is not None:
            print(f"结果已保存: {outcome.artifact_path} ({outcome.bytes_written} 字节)")
        elif task.result_url:
            print(f"结果地址: {task.result_url}")
        else:
            print("任务没有可下载的结果文件")
        return EXIT_OK

    print(f"任务失败: {outcome.reason}", file=sys.stderr)
    return EXIT_FAILED


async def status_command(args: argparse.Namespace, config: CheckerConfig) -> int:
    """执行 status 命令"""
    async with JobClient.from_config(config) as client:
        try:
            task = await client.check(args.task_id, args.user_id)
        except CheckerError as e:
            print(f"状态查询失败: {e}", file=sys.stderr)
            return EXIT_FAILED
    print(task.model_dump_json(indent=2))
    return EXIT_OK


COMMANDS = {
    "run": run_command,
    "status": status_command,
}


def main(argv: list[str] | None = None) -> None:
    """CLI 主入口"""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level)

    try:
        config = _resolve_config(args)
    except ValidationError as e:
        print(f"配置错误: {e}", file=sys.stderr)
        sys.exit(EXIT_USAGE)

    if not config.has_api_key:
        print("请通过 WHATSAPP_API_KEY 环境变量或 --api-key 设置有效的 API key", file=sys.stderr)
        sys.exit(EXIT_USAGE)

    sys.exit(asyncio.run(COMMANDS[args.command](args, config)))


if __name__ == "__main__":
    main()
