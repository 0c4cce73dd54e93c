"""
stamp.py

Responsibility: text templating for the release.

- The app descriptor template uses a literal placeholder (`%%VERSION%%`); it is
  an Erlang file where `%%` also starts comments, so it is not run through
  Jinja2.
- Commit messages are Jinja2 templates rendered with the release tag.
"""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, StrictUndefined, TemplateError

from common_sync.errors import SyncError

_env = Environment(autoescape=False, undefined=StrictUndefined, keep_trailing_newline=True)


def stamp_version(
    template_path: str | Path,
    output_path: str | Path,
    tag: str,
    *,
    placeholder: str = "%%VERSION%%",
) -> int:
    """
    Write `template_path` to `output_path` with every placeholder replaced by `tag`.

    Returns the number of substitutions made.
    """
    tpl = Path(template_path)
    if not tpl.is_file():
        raise SyncError(f"Version template not found: {tpl}")
    text = tpl.read_text(encoding="utf-8")
    count = text.count(placeholder)

    out = Path(output_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(text.replace(placeholder, tag), encoding="utf-8", newline="")
    return count


def render_commit_message(template: str, tag: str) -> str:
    try:
        return _env.from_string(template).render(tag=tag).strip()
    except TemplateError as e:
        raise SyncError(f"Failed rendering commit message template: {e}") from e
