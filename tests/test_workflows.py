"""Tests for the sync, ls, purge and init workflows against an in-memory repository."""

from __future__ import annotations

import io
import unittest

from rich.console import Console

from git_nomad import workflows
from git_nomad.exceptions import ConfigError, GitCommandError
from git_nomad.filters import Filter
from git_nomad.models import Branch, GitRef, Host, LocalAndRemote, LocalOnly, NomadRef, PrintStyle, User
from git_nomad.render import Printer

from nomad_testing import FakeRepository

USER = User("user0")
HOST_A = Host("hostA")
HOST_B = Host("hostB")


def local_ref(name: str, commit_id: str) -> NomadRef[GitRef]:
    host, branch = name.split("/", 3)[2:]
    return NomadRef(user=USER, host=Host(host), branch=Branch(branch), ref=GitRef(commit_id=commit_id, name=name))


class PruneNomadRefsTests(unittest.TestCase):
    def test_remote_deletes_are_batched_before_local_deletes(self) -> None:
        repo = FakeRepository({"refs/nomad/hostA/one": "c1", "refs/nomad/hostA/two": "c2", "refs/nomad/hostB/x": "c3"})
        prune = [
            LocalAndRemote(local_ref("refs/nomad/hostA/one", "c1")),
            LocalOnly(local_ref("refs/nomad/hostB/x", "c3")),
            LocalAndRemote(local_ref("refs/nomad/hostA/two", "c2")),
        ]

        workflows.prune_nomad_refs(repo, "origin", prune)

        self.assertEqual(
            repo.calls,
            [
                ("push", "origin", (":refs/nomad/user0/hostA/one", ":refs/nomad/user0/hostA/two")),
                ("delete", "refs/nomad/hostA/one", "c1"),
                ("delete", "refs/nomad/hostB/x", "c3"),
                ("delete", "refs/nomad/hostA/two", "c2"),
            ],
        )
        self.assertEqual(repo.refs, {})

    def test_failed_remote_push_leaves_local_refs(self) -> None:
        error = GitCommandError(["git", "push"], 1)
        repo = FakeRepository({"refs/nomad/hostA/one": "c1"}, push_error=error)

        with self.assertRaises(GitCommandError):
            workflows.prune_nomad_refs(repo, "origin", [LocalAndRemote(local_ref("refs/nomad/hostA/one", "c1"))])

        self.assertEqual(repo.call_kinds(), ["push"])
        self.assertEqual(repo.refs, {"refs/nomad/hostA/one": "c1"})

    def test_local_only_never_pushes(self) -> None:
        repo = FakeRepository({"refs/nomad/hostB/x": "c3"})

        workflows.prune_nomad_refs(repo, "origin", [LocalOnly(local_ref("refs/nomad/hostB/x", "c3"))])

        self.assertEqual(repo.call_kinds(), ["delete"])

    def test_skips_remote_delete_for_refs_already_gone(self) -> None:
        repo = FakeRepository({"refs/nomad/hostA/one": "c1", "refs/nomad/hostA/two": "c2"})
        prune = [
            LocalAndRemote(local_ref("refs/nomad/hostA/one", "c1")),
            LocalAndRemote(local_ref("refs/nomad/hostA/two", "c2")),
        ]

        workflows.prune_nomad_refs(repo, "origin", prune, remote_known_refs={(USER, HOST_A, Branch("two"))})

        self.assertEqual(repo.calls[0], ("push", "origin", (":refs/nomad/user0/hostA/two",)))
        self.assertEqual(repo.refs, {})


class SyncTests(unittest.TestCase):
    def test_steps_run_in_order(self) -> None:
        repo = FakeRepository(
            {
                "refs/heads/master": "c1",
                "refs/nomad/hostA/master": "c1",
                "refs/nomad/hostA/gone": "c2",
                "refs/nomad/hostB/stale": "c3",
                "refs/nomad/hostB/live": "c4",
            },
            remote_refs=[
                GitRef("c1", "refs/nomad/user0/hostA/master"),
                GitRef("c2", "refs/nomad/user0/hostA/gone"),
                GitRef("c4", "refs/nomad/user0/hostB/live"),
            ],
        )

        workflows.sync(repo, USER, HOST_A, "origin")

        self.assertEqual(
            repo.calls,
            [
                ("push", "origin", ("+refs/heads/*:refs/nomad/user0/hostA/*",)),
                ("fetch", "origin", ("+refs/nomad/user0/*:refs/nomad/*",)),
                ("ls-remote", "origin", ("refs/nomad/user0/*",)),
                ("push", "origin", (":refs/nomad/user0/hostA/gone",)),
                ("delete", "refs/nomad/hostA/gone", "c2"),
                ("delete", "refs/nomad/hostB/stale", "c3"),
            ],
        )
        self.assertEqual(
            set(repo.refs),
            {"refs/heads/master", "refs/nomad/hostA/master", "refs/nomad/hostB/live"},
        )

    def test_nothing_to_prune_skips_delete_push(self) -> None:
        repo = FakeRepository(
            {"refs/heads/master": "c1", "refs/nomad/hostA/master": "c1"},
            remote_refs=[GitRef("c1", "refs/nomad/user0/hostA/master")],
        )

        workflows.sync(repo, USER, HOST_A, "origin")

        self.assertEqual(repo.call_kinds(), ["push", "fetch", "ls-remote"])

    def test_retry_after_interrupted_prune(self) -> None:
        # The remote ref was deleted by an earlier run that died before the local delete.
        repo = FakeRepository(
            {"refs/heads/master": "c1", "refs/nomad/hostA/master": "c1", "refs/nomad/hostA/gone": "c2"},
            remote_refs=[GitRef("c1", "refs/nomad/user0/hostA/master")],
        )

        workflows.sync(repo, USER, HOST_A, "origin")

        self.assertEqual(repo.call_kinds(), ["push", "fetch", "ls-remote", "delete"])
        self.assertNotIn("refs/nomad/hostA/gone", repo.refs)

    def test_prints_listing_when_given_printer(self) -> None:
        repo = FakeRepository(
            {"refs/heads/master": "c1", "refs/nomad/hostA/master": "c1"},
            remote_refs=[GitRef("c1", "refs/nomad/user0/hostA/master")],
        )
        output = io.StringIO()

        workflows.sync(repo, USER, HOST_A, "origin", printer=Printer(Console(file=output)))

        self.assertEqual(output.getvalue(), "\nhostA\n  refs/nomad/hostA/master -> c1\n")


class LsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.repo = FakeRepository(
            {
                "refs/heads/master": "c0",
                "refs/nomad/hostB/master": "c2",
                "refs/nomad/hostA/master": "c1",
                "refs/nomad/hostA/feature/x": "c3",
            }
        )
        self.output = io.StringIO()

    def ls(self, style: PrintStyle = PrintStyle.GROUPED, **kwargs) -> str:
        workflows.ls(self.repo, USER, Printer(Console(file=self.output), style), **kwargs)
        return self.output.getvalue()

    def test_grouped(self) -> None:
        self.assertEqual(
            self.ls(),
            "hostA\n"
            "  refs/nomad/hostA/feature/x -> c3\n"
            "  refs/nomad/hostA/master -> c1\n"
            "hostB\n"
            "  refs/nomad/hostB/master -> c2\n",
        )
        self.assertEqual(self.repo.calls, [])

    def test_filters(self) -> None:
        self.assertEqual(
            self.ls(PrintStyle.REF, host_filter=Filter.allow([HOST_A]), branch_filter=Filter.allow([Branch("master")])),
            "refs/nomad/hostA/master\n",
        )

    def test_branch_filter_drops_empty_hosts(self) -> None:
        self.assertEqual(
            self.ls(PrintStyle.COMMIT, branch_filter=Filter.allow([Branch("feature/x")])),
            "c3\n",
        )

    def test_fetch_first(self) -> None:
        self.ls(PrintStyle.REF, fetch_remote="origin")
        self.assertEqual(self.repo.calls, [("fetch", "origin", ("+refs/nomad/user0/*:refs/nomad/*",))])


class PurgeTests(unittest.TestCase):
    def setUp(self) -> None:
        self.repo = FakeRepository(
            {
                "refs/heads/master": "c0",
                "refs/nomad/hostA/master": "c1",
                "refs/nomad/hostB/master": "c2",
            }
        )

    def test_purge_selected_hosts(self) -> None:
        pruned = workflows.purge(self.repo, USER, "origin", Filter.allow([HOST_A]))

        self.assertEqual(pruned, [LocalAndRemote(local_ref("refs/nomad/hostA/master", "c1"))])
        self.assertEqual(
            self.repo.calls,
            [
                ("fetch", "origin", ("+refs/nomad/user0/*:refs/nomad/*",)),
                ("push", "origin", (":refs/nomad/user0/hostA/master",)),
                ("delete", "refs/nomad/hostA/master", "c1"),
            ],
        )

    def test_purge_all(self) -> None:
        pruned = workflows.purge(self.repo, USER, "origin", Filter.all())

        self.assertEqual(len(pruned), 2)
        self.assertEqual(set(self.repo.refs), {"refs/heads/master"})
        self.assertEqual(
            self.repo.calls[1],
            ("push", "origin", (":refs/nomad/user0/hostA/master", ":refs/nomad/user0/hostB/master")),
        )

    def test_purge_with_nothing_to_delete(self) -> None:
        pruned = workflows.purge(self.repo, USER, "origin", Filter.allow([Host("hostC")]))

        self.assertEqual(pruned, [])
        self.assertEqual(self.repo.call_kinds(), ["fetch"])


class InitTests(unittest.TestCase):
    def test_writes_identity(self) -> None:
        repo = FakeRepository()
        workflows.init(repo, USER, HOST_A)
        self.assertEqual(repo.config, {"user": "user0", "host": "hostA"})

    def test_same_identity_is_a_no_op_change(self) -> None:
        repo = FakeRepository(config={"user": "user0", "host": "hostA"})
        workflows.init(repo, USER, HOST_A)
        self.assertEqual(repo.config, {"user": "user0", "host": "hostA"})

    def test_refuses_to_overwrite_without_force(self) -> None:
        repo = FakeRepository(config={"user": "user0", "host": "hostA"})
        with self.assertRaises(ConfigError):
            workflows.init(repo, USER, HOST_B)
        workflows.init(repo, USER, HOST_B, force=True)
        self.assertEqual(repo.config["host"], "hostB")


if __name__ == "__main__":
    unittest.main()
