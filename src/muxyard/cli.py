"""命令行入口 - tmux 会话管理"""

import argparse
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from .config import config_path, load_config
from .errors import ConfigError, ExitCode, user_facing_error
from .tmux_control import check_tmux, is_tmux_available


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='muxyard',
        description='Muxyard - Tmux Session Manager',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
快捷键（会话列表）:
  enter/l   进入会话（tmux 内切换客户端）
  c/n       新建会话（从 git 仓库或手动）
  r         重命名会话
  d/x       删除会话（attached 会话需要确认）
  /         模糊过滤
  ctrl+v    多选模式
  q         退出

使用方式:
  muxyard              # 启动交互界面
  muxyard --check      # 检查环境
  muxyard --version    # 显示版本
        """
    )
    parser.add_argument('--version', '-v', action='store_true', help='显示版本')
    parser.add_argument('--check', '-c', action='store_true', help='检查环境')
    parser.add_argument('--config', type=Path, default=None,
                        help=f'配置文件路径（默认 {config_path()}）')
    parser.add_argument('--debug', action='store_true', help='输出调试日志')
    return parser


def main(argv=None) -> int:
    """主入口"""
    args = build_parser().parse_args(argv)

    if args.version:
        from . import __version__
        print(f"muxyard version {__version__}")
        return ExitCode.SUCCESS

    if args.check:
        return check_environment(args.config)

    if not is_tmux_available():
        print("Error: tmux is not installed or not found in PATH", file=sys.stderr)
        print("Please install tmux to use muxyard", file=sys.stderr)
        return ExitCode.RUNTIME_ERROR

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(user_facing_error(e), file=sys.stderr)
        return e.code

    if not sys.stdout.isatty():
        print("Error: muxyard must run in a terminal", file=sys.stderr)
        return ExitCode.RUNTIME_ERROR

    from .app import configure_logging, run_app
    configure_logging(debug=args.debug)
    run_app(config)
    return ExitCode.SUCCESS


def check_environment(path: Path | None = None) -> int:
    """检查环境"""
    print("检查环境...\n")
    all_ok = True

    ok, msg = check_tmux()
    if ok:
        print(f"✅ tmux: {msg}")
    else:
        print(f"❌ tmux: {msg}")
        all_ok = False

    try:
        print(f"✅ Textual: {version('textual')}")
    except PackageNotFoundError:
        print("❌ Textual: 未安装")
        all_ok = False

    try:
        load_config(path)
        print(f"✅ 配置: {path or config_path()}")
    except ConfigError as e:
        print(f"❌ 配置: {e}")
        all_ok = False

    print()
    if all_ok:
        print("✓ 所有检查通过")
    else:
        print("✗ 部分检查失败，请查看上方信息")

    return ExitCode.SUCCESS if all_ok else ExitCode.RUNTIME_ERROR


if __name__ == '__main__':
    sys.exit(main())
