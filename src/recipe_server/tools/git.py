"""Git tools used by commit-message style recipes."""

import logging
import subprocess
from pathlib import Path

from recipe_server.tools.fs import FileTools
from recipe_server.tools.registry import tool

logger = logging.getLogger(__name__)

DEFAULT_DIFF_ARGS = ["--no-color", "--unified=0", "--diff-algorithm=minimal"]

# Body lines kept per modified file before the middle is elided
MAX_FILE_LINES = 20

_FAILURE_HINTS: list[tuple[tuple[str, ...], str]] = [
    (("nothing to commit",), "Nothing to commit (no staged files?). Run `git add -A`."),
    (("pre-commit",), "A pre-commit hook failed. Try fixing issues or run with no_verify=true."),
    (
        ("gpg", "signing"),
        "GPG signing failed. Configure GPG or disable signing with "
        "`git config commit.gpgsign false`.",
    ),
    (
        ("user.name", "user.email"),
        "Missing user identity. Run `git config user.name 'Your Name'` and "
        "`git config user.email you@example.com`.",
    ),
]


class GitTools:
    """Read repository state and create commits via the git CLI."""

    def __init__(self, cwd: Path | None = None, file_tools: FileTools | None = None):
        self.cwd = cwd
        self.file_tools = file_tools

    @tool(name="staged_diff", description="Summary of staged changes (git diff --cached)")
    def staged_diff(self, args: list[str] | None = None) -> str:
        full_diff = self._exec(["git", "diff", "--cached", *(args or DEFAULT_DIFF_ARGS)])
        return summarize_diff(full_diff)

    @tool(name="status", description="Concise git status (-sb)")
    def status(self) -> str:
        return self._exec(["git", "status", "-sb"])

    @tool(name="branch", description="Current branch name")
    def branch(self) -> str:
        return self._exec(["git", "rev-parse", "--abbrev-ref", "HEAD"]).strip()

    @tool(name="commit", description="Write .git/COMMIT_EDITMSG and run git commit -F -")
    def commit(
        self,
        message: str,
        signoff: bool = False,
        no_verify: bool = False,
        write_editmsg: bool = True,
    ) -> str:
        if write_editmsg:
            editmsg = (self.cwd or Path.cwd()) / ".git" / "COMMIT_EDITMSG"
            if self.file_tools is not None:
                self.file_tools.write_file(str(editmsg), message)
            else:
                editmsg.write_text(message, encoding="utf-8")

        staged = self._exec(["git", "diff", "--cached", "--name-only"])
        if not staged.strip():
            raise ValueError("No staged changes. Run `git add` first.")

        cmd = ["git", "commit"]
        if no_verify:
            cmd.append("--no-verify")
        if signoff:
            cmd.append("--signoff")
        cmd += ["-F", "-"]

        result = subprocess.run(
            cmd,
            input=message,
            capture_output=True,
            text=True,
            cwd=self.cwd,
        )
        output = (result.stdout + result.stderr).strip()
        if result.returncode != 0:
            raise RuntimeError(_commit_failure_message(cmd, result.returncode, output))

        logger.info("Created git commit")
        return output

    def _exec(self, cmd: list[str]) -> str:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            cwd=self.cwd,
        )
        if result.returncode != 0:
            raise RuntimeError(
                f"Command failed: {' '.join(cmd)} ({result.returncode})\n"
                f"{result.stdout}{result.stderr}"
            )
        return result.stdout


def summarize_diff(diff: str) -> str:
    """Condense a unified diff into a per-file summary.

    New and deleted files are reduced to a single line. Modified files get a
    "path (+added -deleted)" header followed by their diff lines; bodies longer
    than MAX_FILE_LINES keep only the first and last ten lines.
    """
    result: list[str] = []
    current_file: str | None = None
    is_new = is_deleted = False
    added = deleted = 0
    content: list[str] = []

    def flush() -> None:
        if current_file is None:
            return
        if is_new:
            result.append(f"new file: {current_file}")
        elif is_deleted:
            result.append(f"deleted file: {current_file}")
        else:
            result.append(f"{current_file} (+{added} -{deleted})")
            if len(content) <= MAX_FILE_LINES:
                result.extend(content)
            else:
                half = MAX_FILE_LINES // 2
                result.extend(content[:half])
                result.append(f"... ({len(content) - MAX_FILE_LINES} lines omitted) ...")
                result.extend(content[-half:])

    for line in diff.splitlines():
        if line.startswith("diff --git"):
            flush()
            current_file = line.partition(" b/")[2] or None
            is_new = is_deleted = False
            added = deleted = 0
            content = [line]
        elif line.startswith("new file mode"):
            is_new = True
        elif line.startswith("deleted file mode"):
            is_deleted = True
        elif line.startswith("+") and not line.startswith("+++"):
            added += 1
            content.append(line)
        elif line.startswith("-") and not line.startswith("---"):
            deleted += 1
            content.append(line)
        elif line.strip():
            content.append(line)

    flush()
    return "\n".join(result)


def _commit_failure_message(cmd: list[str], code: int, output: str) -> str:
    lowered = output.lower()
    hints = [
        f"Hint: {hint}"
        for needles, hint in _FAILURE_HINTS
        if any(needle in lowered for needle in needles)
    ]
    if "merge" in lowered and "in progress" in lowered:
        hints.append(
            "Hint: Merge/rebase in progress. Resolve conflicts or run "
            "`git merge --continue` / `git rebase --continue`."
        )

    lines = [f"Command failed ({code}): {' '.join(cmd)}"]
    if output:
        lines += ["Output:", output]
    if hints:
        lines += ["", *hints]
    return "\n".join(lines)
