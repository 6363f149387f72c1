"""In-memory stand-ins for git, gh and brew.

The fakes simulate just enough of each tool against a tmp_path tree for the
pipeline to run end to end, and record every call in `world.calls`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from tapsetup.tools.base import Toolbox
from tapsetup.util.shell import CmdResult

MUTATING = {
    "brew.tap_new",
    "brew.create",
    "brew.tap",
    "brew.audit",
    "brew.test",
    "brew.install",
    "gh.repo_create",
    "git.rename_branch",
    "git.add_all",
    "git.commit",
    "git.push",
}


def ok(cmd: str, stdout: str = "") -> CmdResult:
    return CmdResult(cmd=cmd, returncode=0, stdout=stdout, stderr="", elapsed_s=0.0)


def err(cmd: str, stderr: str, returncode: int = 1, stdout: str = "") -> CmdResult:
    return CmdResult(cmd=cmd, returncode=returncode, stdout=stdout, stderr=stderr, elapsed_s=0.0)


@dataclass
class LocalRepo:
    branch: str = "main"
    commits: int = 0
    snapshot: dict[str, str] = field(default_factory=dict)
    remotes: dict[str, str] = field(default_factory=dict)

    @property
    def head(self) -> str | None:
        return f"{self.commits:040x}" if self.commits else None


@dataclass
class World:
    root: Path
    installed: set[str] = field(default_factory=lambda: {"git", "gh", "brew"})
    authed: bool = True
    local: dict[str, LocalRepo] = field(default_factory=dict)
    remote: dict[str, dict] = field(default_factory=dict)
    tapped: list[str] = field(default_factory=list)
    calls: list[tuple[str, tuple]] = field(default_factory=list)
    failures: dict[str, list[CmdResult]] = field(default_factory=dict)
    interrupts: set[str] = field(default_factory=set)
    brew_create_env: dict[str, str] | None = None

    @property
    def brew_prefix(self) -> Path:
        return self.root / "homebrew"

    def tap_dir(self, owner: str, repo: str) -> Path:
        return self.brew_prefix / "Library" / "Taps" / owner / repo

    def fail(self, name: str, stderr: str, times: int = 1, returncode: int = 1) -> None:
        self.failures.setdefault(name, []).extend(
            err(name, stderr, returncode) for _ in range(times)
        )

    def record(self, name: str, *args) -> CmdResult | None:
        self.calls.append((name, args))
        if name in self.interrupts:
            raise KeyboardInterrupt
        queued = self.failures.get(name)
        if queued:
            return queued.pop(0)
        return None

    def mutations(self) -> list[str]:
        return [name for name, _ in self.calls if name in MUTATING]

    def add_remote_repo(self, slug: str) -> dict:
        info = {
            "name": slug.split("/", 1)[1],
            "url": f"https://github.com/{slug}",
            "sshUrl": f"git@github.com:{slug}.git",
            "heads": {},
        }
        self.remote[slug] = info
        return info

    def remote_for_url(self, url: str) -> dict | None:
        for info in self.remote.values():
            if url in (info["url"], f"{info['url']}.git", info["sshUrl"]):
                return info
        return None

    def repo(self, path: Path) -> LocalRepo:
        return self.local[str(path)]

    def work_tree(self, path: Path) -> dict[str, str]:
        files = {}
        for p in sorted(path.rglob("*")):
            rel = p.relative_to(path)
            if p.is_file() and rel.parts[0] != ".git":
                files[str(rel)] = p.read_text(encoding="utf-8")
        return files

    def which(self, binary: str) -> str | None:
        return f"/usr/local/bin/{binary}" if binary in self.installed else None


@dataclass
class FakeGit:
    world: World
    binary: str = "git"

    def _repo(self, repo: Path) -> LocalRepo | None:
        return self.world.local.get(str(repo))

    def current_branch(self, repo: Path) -> CmdResult:
        name = "git.current_branch"
        forced = self.world.record(name, repo)
        if forced:
            return forced
        return ok(name, self._repo(repo).branch + "\n")

    def rename_branch(self, repo: Path, branch: str) -> CmdResult:
        name = "git.rename_branch"
        forced = self.world.record(name, repo, branch)
        if forced:
            return forced
        self._repo(repo).branch = branch
        return ok(name)

    def remote_url(self, repo: Path, remote: str) -> CmdResult:
        name = "git.remote_url"
        forced = self.world.record(name, repo, remote)
        if forced:
            return forced
        url = self._repo(repo).remotes.get(remote)
        if url is None:
            return err(name, f"error: No such remote '{remote}'", 2)
        return ok(name, url + "\n")

    def status_porcelain(self, repo: Path) -> CmdResult:
        name = "git.status_porcelain"
        forced = self.world.record(name, repo)
        if forced:
            return forced
        local = self._repo(repo)
        current = self.world.work_tree(repo)
        changed = sorted(
            p for p in set(current) | set(local.snapshot) if current.get(p) != local.snapshot.get(p)
        )
        return ok(name, "".join(f"?? {p}\n" for p in changed))

    def add_all(self, repo: Path) -> CmdResult:
        return self.world.record("git.add_all", repo) or ok("git.add_all")

    def commit(self, repo: Path, message: str) -> CmdResult:
        name = "git.commit"
        forced = self.world.record(name, repo, message)
        if forced:
            return forced
        local = self._repo(repo)
        current = self.world.work_tree(repo)
        if current == local.snapshot:
            return err(name, "", 1, stdout="nothing to commit, working tree clean")
        local.snapshot = current
        local.commits += 1
        return ok(name)

    def push(self, repo: Path, remote: str, branch: str) -> CmdResult:
        name = "git.push"
        forced = self.world.record(name, repo, remote, branch)
        if forced:
            return forced
        local = self._repo(repo)
        info = self.world.remote_for_url(local.remotes.get(remote, ""))
        if info is None:
            return err(name, f"fatal: '{remote}' does not appear to be a git repository", 128)
        info["heads"][branch] = local.head
        return ok(name)

    def head(self, repo: Path) -> CmdResult:
        name = "git.head"
        forced = self.world.record(name, repo)
        if forced:
            return forced
        local = self._repo(repo)
        if local is None or local.head is None:
            return err(name, "fatal: ambiguous argument 'HEAD'", 128)
        return ok(name, local.head + "\n")

    def ls_remote(self, repo: Path, remote: str, branch: str) -> CmdResult:
        name = "git.ls_remote"
        forced = self.world.record(name, repo, remote, branch)
        if forced:
            return forced
        local = self._repo(repo)
        info = self.world.remote_for_url(local.remotes.get(remote, "")) if local else None
        if info is None:
            return err(name, f"fatal: '{remote}' does not appear to be a git repository", 128)
        head = info["heads"].get(branch)
        return ok(name, f"{head}\trefs/heads/{branch}\n" if head else "")


@dataclass
class FakeGh:
    world: World
    binary: str = "gh"

    def auth_status(self) -> CmdResult:
        name = "gh.auth_status"
        forced = self.world.record(name)
        if forced:
            return forced
        if not self.world.authed:
            return err(name, "You are not logged into any GitHub hosts. Run gh auth login")
        return ok(name, "Logged in to github.com")

    def repo_view(self, slug: str, fields: str) -> CmdResult:
        name = "gh.repo_view"
        forced = self.world.record(name, slug, fields)
        if forced:
            return forced
        info = self.world.remote.get(slug)
        if info is None:
            return err(name, f"GraphQL: Could not resolve to a Repository with the name '{slug}'.")
        return ok(name, json.dumps({k: info[k] for k in fields.split(",")}))

    def repo_create(self, slug: str, *, source: Path, remote: str, visibility: str) -> CmdResult:
        name = "gh.repo_create"
        forced = self.world.record(name, slug, source, remote, visibility)
        if forced:
            return forced
        if slug in self.world.remote:
            return err(name, f"GraphQL: Name already exists on this account ({slug})")
        info = self.world.add_remote_repo(slug)
        info["visibility"] = visibility
        local = self.world.repo(source)
        local.remotes[remote] = f"{info['url']}.git"
        info["heads"][local.branch] = local.head
        return ok(name, info["url"] + "\n")


@dataclass
class FakeBrew:
    world: World
    binary: str = "brew"

    def repository(self) -> CmdResult:
        return self.world.record("brew.repository") or ok("brew.repository", f"{self.world.brew_prefix}\n")

    def tap_new(self, slug: str) -> CmdResult:
        name = "brew.tap_new"
        forced = self.world.record(name, slug)
        if forced:
            return forced
        owner, repo = slug.split("/", 1)
        path = self.world.tap_dir(owner, repo)
        (path / ".git").mkdir(parents=True)
        (path / "Formula").mkdir()
        (path / "README.md").write_text(f"# {slug}\n", encoding="utf-8")
        self.world.local[str(path)] = LocalRepo(
            branch="main", commits=1, snapshot=self.world.work_tree(path)
        )
        return ok(name)

    def create(self, *, tap: str, name: str, url: str, env: dict[str, str] | None = None) -> CmdResult:
        call = "brew.create"
        self.world.brew_create_env = env
        forced = self.world.record(call, tap, name, url)
        if forced:
            return forced
        owner, repo = tap.split("/", 1)
        formula = self.world.tap_dir(owner, repo) / "Formula" / f"{name}.rb"
        formula.parent.mkdir(parents=True, exist_ok=True)
        formula.write_text(f'class X < Formula\n  url "{url}"\nend\n', encoding="utf-8")
        return ok(call)

    def taps(self) -> CmdResult:
        return self.world.record("brew.taps") or ok("brew.taps", "".join(f"{t}\n" for t in self.world.tapped))

    def tap(self, identifier: str) -> CmdResult:
        name = "brew.tap"
        forced = self.world.record(name, identifier)
        if forced:
            return forced
        self.world.tapped.append(identifier)
        return ok(name)

    def audit(self, formula: str) -> CmdResult:
        return self.world.record("brew.audit", formula) or ok("brew.audit")

    def test(self, formula: str) -> CmdResult:
        return self.world.record("brew.test", formula) or ok("brew.test")

    def install(self, formula: str) -> CmdResult:
        return self.world.record("brew.install", formula) or ok("brew.install")


def fake_toolbox(world: World) -> Toolbox:
    return Toolbox(git=FakeGit(world), gh=FakeGh(world), brew=FakeBrew(world), which=world.which)
