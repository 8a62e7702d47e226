from __future__ import annotations

import argparse
import asyncio
import mimetypes
import sys
from collections.abc import Callable, Coroutine
from datetime import date
from pathlib import Path
from typing import Any

from memory_box import MemoryBox
from memory_box.cli import output as out
from memory_box.config import (
    Config,
    config_exists,
    config_path_display,
    load_config,
    save_config,
)
from memory_box.errors import (
    MemoryBoxError,
    MemoryNotFoundError,
    StorageQuotaExceededError,
)
from memory_box.flow import STORAGE_FULL_MESSAGE, Generator

DESCRIPTION = """\
memory-box · 把孩子的闪光时刻写进成长手账

Upload a photo of your child, optionally add a few keywords, and get a
short AI-written diary entry. Entries are kept locally in a memory box
you can browse, edit, delete and export as postcard images.

Quick start:
  memory-box profile set 小满 2022-03-18
  memory-box record ./photo.jpg --keywords "第一次自己吃饭"
"""


# ── Infrastructure helpers ──────────────────────────────────────────


def _build_box(cfg: Config) -> MemoryBox:
    return MemoryBox.from_config(cfg)


def _require_api_key(cfg: Config) -> None:
    """Exit with guidance if no API key is configured."""
    if cfg.openai_api_key:
        return
    out.error(
        "OpenAI API key not configured. "
        "Run 'memory-box config set-key' or set OPENAI_API_KEY."
    )
    sys.exit(1)


def _ensure_profile(box: MemoryBox) -> None:
    """Ask for the child's profile interactively if none is saved yet."""
    if box.profiles.profile is not None:
        return
    if not sys.stdin.isatty():
        out.error("请先补充孩子的信息：memory-box profile set <昵称> <YYYY-MM-DD>")
        sys.exit(1)

    out.info("先认识一下小主角吧。")
    while True:
        nickname = input("  孩子昵称: ").strip()
        birthdate = input("  出生日期 (YYYY-MM-DD): ").strip()
        try:
            box.profiles.save_profile(nickname, birthdate)
        except MemoryBoxError as exc:
            out.error(str(exc))
            continue
        out.success("已保存孩子信息")
        return


def _get_memory(box: MemoryBox, memory_id: str):
    memory = box.memories.get(memory_id)
    if memory is None:
        out.error(f"Memory '{memory_id}' not found. See 'memory-box memories list'.")
        sys.exit(1)
    return memory


# ── serve ───────────────────────────────────────────────────────────


def cmd_serve(args: argparse.Namespace) -> None:
    import uvicorn

    cfg = load_config()
    host = args.host or cfg.host
    port = args.port or cfg.port
    if not cfg.is_configured:
        out.warn("OPENAI_API_KEY is not set; /api/generate will answer with 500.")
    out.info(f"Serving on http://{host}:{port}")
    uvicorn.run("memory_box.api.app:app", host=host, port=port)


# ── record ──────────────────────────────────────────────────────────


async def cmd_record(args: argparse.Namespace) -> None:
    """Run the authoring flow for one photo and save the result."""
    cfg = load_config()
    photo_path = Path(args.photo)
    if not photo_path.is_file():
        out.error(f"File not found: {photo_path}")
        sys.exit(1)

    box = _build_box(cfg)
    _ensure_profile(box)

    generator: Generator
    if args.server:
        from memory_box.client import HttpDiaryGenerator

        generator = HttpDiaryGenerator(args.server)
    else:
        _require_api_key(cfg)
        generator = box.diary_generator()

    flow = box.authoring_flow(generator)
    media_type, _ = mimetypes.guess_type(photo_path.name)

    try:
        flow.start()
        flow.set_keywords(args.keywords or "")
        flow.select_photo(photo_path.read_bytes(), media_type)
    except MemoryBoxError as exc:
        out.error(flow.error or str(exc))
        sys.exit(1)

    out.info(out.dim("正在为这张照片写日记…"))
    result = await flow.generate()
    if result is None:
        out.error(flow.error or "生成失败，请稍后重试。")
        sys.exit(1)

    out.header("今天的成长日记")
    print()
    out.diary(flow.draft.diary)
    print()
    if result.usage and result.usage.total_tokens is not None:
        out.kv("tokens", result.usage.total_tokens, indent=4)

    if not args.yes and sys.stdin.isatty():
        answer = input("  收藏这篇日记? [Y/n/e=编辑] ").strip().lower()
        if answer == "n":
            flow.reset()
            out.warn("已放弃这篇日记。")
            return
        if answer == "e":
            edited = input("  新的日记内容: ").strip()
            if edited:
                flow.set_diary(edited)

    try:
        memory = flow.save()
    except StorageQuotaExceededError:
        out.error(STORAGE_FULL_MESSAGE)
        sys.exit(1)
    except MemoryBoxError as exc:
        out.error(str(exc))
        sys.exit(1)

    out.success(f"已收藏到成长手账 ({memory.id})")
    out.next_step(f"memory-box memories export {memory.id}", "生成明信片")


# ── memories ────────────────────────────────────────────────────────


async def cmd_memories_list(args: argparse.Namespace) -> None:
    box = _build_box(load_config())
    memories = box.memories.memories
    if not memories:
        out.warn("手账还空着，去记录第一束闪光吧。")
        out.next_step("memory-box record PHOTO")
        return

    stats = box.memories.stats()
    out.header(f"我们的成长手账 ({stats.total} 个闪光日子)")
    print()
    shown = memories[: args.limit] if args.limit else memories
    for m in shown:
        day = m.created_datetime.astimezone().date().isoformat()
        preview = m.diary.replace("\n", " ")
        if len(preview) > 40:
            preview = preview[:40] + "…"
        print(f"  {out.dim(m.id)}  [{day}] {preview}")
    print()


async def cmd_memories_show(args: argparse.Namespace) -> None:
    box = _build_box(load_config())
    m = _get_memory(box, args.id)

    out.header(m.created_datetime.astimezone().strftime("%Y-%m-%d %H:%M"))
    print()
    out.diary(m.diary)
    print()
    if m.nickname:
        out.kv("昵称", m.nickname)
    if m.age:
        out.kv("年龄", m.age)
    if m.keywords:
        out.kv("关键词", m.keywords)
    out.kv("id", m.id)


async def cmd_memories_edit(args: argparse.Namespace) -> None:
    box = _build_box(load_config())
    diary = args.diary.strip() if args.diary is not None else None
    keywords = args.keywords.strip() if args.keywords is not None else None
    if diary is not None and not diary:
        out.error("日记还空着呢，补充几句再收藏吧。")
        sys.exit(1)
    if diary is None and keywords is None:
        out.warn("Nothing to change. Pass --diary and/or --keywords.")
        return

    try:
        box.memories.update_memory(
            args.id, diary=diary, keywords=keywords or None
        )
    except MemoryNotFoundError as exc:
        out.error(str(exc))
        sys.exit(1)
    except StorageQuotaExceededError:
        out.error(STORAGE_FULL_MESSAGE)
        sys.exit(1)
    out.success("已更新")


async def cmd_memories_delete(args: argparse.Namespace) -> None:
    box = _build_box(load_config())
    _get_memory(box, args.id)
    if not args.yes and sys.stdin.isatty():
        answer = input("  确定删除这段记忆吗? [y/N] ").strip().lower()
        if answer != "y":
            return
    box.memories.delete_memory(args.id)
    out.success("已删除")


async def cmd_memories_export(args: argparse.Namespace) -> None:
    cfg = load_config()
    box = _build_box(cfg)
    _get_memory(box, args.id)
    try:
        path = box.export_postcard(args.id, out_dir=args.out, font_path=args.font)
    except (OSError, ValueError) as exc:
        out.error(f"明信片有点害羞，稍后再试一次吧。({exc})")
        sys.exit(1)
    out.success(f"已为你生成明信片: {path}")


async def cmd_memories_stats(args: argparse.Namespace) -> None:
    box = _build_box(load_config())
    stats = box.memories.stats()
    if not stats.total:
        out.info("还没有记录，今天就开始吧！")
        return
    out.info(
        f"已记录 {stats.total} 个闪光日子 · 一起走过的第 {stats.days_together} 天"
    )


# ── profile ─────────────────────────────────────────────────────────


async def cmd_profile_set(args: argparse.Namespace) -> None:
    box = _build_box(load_config())
    try:
        profile = box.profiles.save_profile(args.nickname, args.birthdate)
    except MemoryBoxError as exc:
        out.error(str(exc))
        sys.exit(1)
    out.success(f"已保存 {profile.nickname} 的信息")


async def cmd_profile_show(args: argparse.Namespace) -> None:
    box = _build_box(load_config())
    profile = box.profiles.profile
    if profile is None:
        out.warn("还没有孩子的信息。")
        out.next_step("memory-box profile set <昵称> <YYYY-MM-DD>")
        return
    out.header("孩子信息")
    out.kv("昵称", profile.nickname)
    out.kv("生日", profile.birthdate)
    out.kv("年龄", box.profiles.age_label(date.today()) or "成长中的小宝贝")


async def cmd_profile_clear(args: argparse.Namespace) -> None:
    box = _build_box(load_config())
    box.profiles.clear_profile()
    out.success("已清除孩子信息")


# ── config ──────────────────────────────────────────────────────────


async def cmd_config_show(args: argparse.Namespace) -> None:
    cfg = load_config()

    out.header(f"Configuration ({config_path_display()})")
    print()
    if cfg.openai_api_key:
        masked = cfg.openai_api_key[:7] + "..." + cfg.openai_api_key[-4:]
        out.kv("OpenAI API key", masked)
    else:
        out.kv("OpenAI API key", out.dim("not set"))
    out.kv("Base URL", cfg.openai_base_url)
    out.kv("Model", cfg.openai_model_id)
    out.kv("Storage", f"{cfg.storage_provider} ({cfg.storage_path})")
    out.kv("Quota", f"{cfg.storage_quota_bytes:,} bytes" if cfg.quota else "none")
    out.kv("Prompt", cfg.prompt_path or out.dim("built-in"))
    if not config_exists():
        print()
        out.info(out.dim("No config file yet; showing defaults + environment."))


async def cmd_config_set_key(args: argparse.Namespace) -> None:
    cfg = load_config()
    key = input("  OpenAI API key: ").strip()
    if not key:
        out.warn("No key entered, nothing changed.")
        return
    cfg.openai_api_key = key
    path = save_config(cfg)
    out.success(f"API key saved to {path}")


async def cmd_config_path(args: argparse.Namespace) -> None:
    print(config_path_display())


# ── Parser ──────────────────────────────────────────────────────────


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="memory-box",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed logs",
    )
    sub = parser.add_subparsers(dest="command", title="commands")

    p_serve = sub.add_parser("serve", help="Run the HTTP generation service")
    p_serve.add_argument("--host", default=None, help="Bind address")
    p_serve.add_argument("--port", type=int, default=None, help="Bind port")

    p_rec = sub.add_parser("record", help="Write a diary entry for a photo and save it")
    p_rec.add_argument("photo", help="Path to a JPG or PNG photo")
    p_rec.add_argument("--keywords", default=None, help="Recent keywords or events")
    p_rec.add_argument(
        "--server",
        metavar="URL",
        default=None,
        help="Use a running memory-box server instead of calling the model directly",
    )
    p_rec.add_argument(
        "-y", "--yes", action="store_true", help="Save without asking"
    )

    # memories
    p_mem = sub.add_parser("memories", help="Browse and manage saved memories")
    mem_sub = p_mem.add_subparsers(dest="memories_command", title="memories commands")

    p_mem_list = mem_sub.add_parser("list", help="List memories, newest first")
    p_mem_list.add_argument(
        "--limit", type=int, default=None, help="Max memories to show"
    )

    p_mem_show = mem_sub.add_parser("show", help="Show one memory")
    p_mem_show.add_argument("id")

    p_mem_edit = mem_sub.add_parser("edit", help="Edit a memory's diary or keywords")
    p_mem_edit.add_argument("id")
    p_mem_edit.add_argument("--diary", default=None, help="New diary text")
    p_mem_edit.add_argument("--keywords", default=None, help="New keywords")

    p_mem_del = mem_sub.add_parser("delete", help="Delete a memory")
    p_mem_del.add_argument("id")
    p_mem_del.add_argument(
        "-y", "--yes", action="store_true", help="Delete without asking"
    )

    p_mem_exp = mem_sub.add_parser("export", help="Export a memory as a postcard PNG")
    p_mem_exp.add_argument("id")
    p_mem_exp.add_argument("--out", metavar="DIR", default=None, help="Output dir")
    p_mem_exp.add_argument(
        "--font", metavar="PATH", default=None, help="TrueType/OpenType font (CJK)"
    )

    mem_sub.add_parser("stats", help="How many moments recorded so far")

    # profile
    p_prof = sub.add_parser("profile", help="Manage the child's profile")
    prof_sub = p_prof.add_subparsers(dest="profile_command", title="profile commands")

    p_prof_set = prof_sub.add_parser("set", help="Save nickname and birthdate")
    p_prof_set.add_argument("nickname")
    p_prof_set.add_argument("birthdate", help="YYYY-MM-DD")
    prof_sub.add_parser("show", help="Show the saved profile")
    prof_sub.add_parser("clear", help="Remove the saved profile")

    # config
    p_cfg = sub.add_parser("config", help="View and change settings")
    cfg_sub = p_cfg.add_subparsers(dest="config_command", title="config commands")
    cfg_sub.add_parser("show", help="Show current settings")
    cfg_sub.add_parser("set-key", help="Change OpenAI API key")
    cfg_sub.add_parser("path", help="Print config file location")

    return parser


# ── Dispatch ────────────────────────────────────────────────────────

_CommandHandler = Callable[[argparse.Namespace], Coroutine[Any, Any, None]]

_COMMAND_MAP: dict[str, _CommandHandler] = {
    "record": cmd_record,
}

_MEMORIES_MAP: dict[str, _CommandHandler] = {
    "list": cmd_memories_list,
    "show": cmd_memories_show,
    "edit": cmd_memories_edit,
    "delete": cmd_memories_delete,
    "export": cmd_memories_export,
    "stats": cmd_memories_stats,
}

_PROFILE_MAP: dict[str, _CommandHandler] = {
    "set": cmd_profile_set,
    "show": cmd_profile_show,
    "clear": cmd_profile_clear,
}

_CONFIG_MAP: dict[str, _CommandHandler] = {
    "show": cmd_config_show,
    "set-key": cmd_config_set_key,
    "path": cmd_config_path,
}

_SUBCOMMANDS: dict[str, tuple[str, dict[str, _CommandHandler]]] = {
    "memories": ("memories_command", _MEMORIES_MAP),
    "profile": ("profile_command", _PROFILE_MAP),
    "config": ("config_command", _CONFIG_MAP),
}


def main(argv: list[str] | None = None) -> None:
    import logging

    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="  %(name)s: %(message)s",
        )
    logging.getLogger("LiteLLM").setLevel(logging.CRITICAL)
    logging.getLogger("litellm").setLevel(logging.CRITICAL)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    if not args.command:
        out.banner()
        parser.print_help()
        return

    if args.command == "serve":
        cmd_serve(args)
        return

    if args.command in _SUBCOMMANDS:
        dest, handlers = _SUBCOMMANDS[args.command]
        sub_command = getattr(args, dest)
        if not sub_command:
            parser.parse_args([args.command, "--help"])
            return
        handler = handlers.get(sub_command)
    else:
        handler = _COMMAND_MAP.get(args.command)

    if handler is None:
        parser.print_help()
        return

    try:
        asyncio.run(handler(args))
    except KeyboardInterrupt:
        print()
