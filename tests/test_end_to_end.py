"""Multi-host scenarios against real git clones sharing one remote."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from git_nomad import workflows
from git_nomad.filters import Filter
from git_nomad.models import Host, LocalOnly
from git_nomad.snapshot import build_snapshot, prune_deleted_branches

from nomad_testing import GitSandbox, requires_git


@requires_git
class TwoHostSyncTests(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.sandbox = GitSandbox(Path(tmp.name))
        self.host_a = self.sandbox.clone("hostA")
        self.host_b = self.sandbox.clone("hostB")

    def test_branch_lifecycle_across_hosts(self) -> None:
        a, b = self.host_a, self.host_b

        a.sync()
        self.assertEqual(self.sandbox.remote_nomad_refs(), {a.nomad_ref("master")})

        b.sync()
        self.assertEqual(self.sandbox.remote_nomad_refs(), {a.nomad_ref("master"), b.nomad_ref("master")})
        self.assertEqual(b.nomad_refs(), {a.nomad_ref("master"), b.nomad_ref("master")})

        a.create_branch("feature")
        a.sync()
        self.assertIn(a.nomad_ref("feature"), self.sandbox.remote_nomad_refs())
        self.assertNotIn(a.nomad_ref("feature"), b.nomad_refs())

        b.sync()
        self.assertIn(a.nomad_ref("feature"), b.nomad_refs())
        stale = a.nomad_ref("feature")

        a.delete_branch("feature")
        a.sync()
        self.assertEqual(self.sandbox.remote_nomad_refs(), {a.nomad_ref("master"), b.nomad_ref("master")})
        self.assertEqual(a.nomad_refs(), {a.nomad_ref("master"), b.nomad_ref("master")})

        # b still tracks a's deleted branch, and only a may delete it from the remote.
        decision = prune_deleted_branches(
            build_snapshot(b.repo, b.user),
            b.host,
            workflows.list_remote_nomad_refs(b.repo, b.user, b.remote),
        )
        self.assertEqual([type(entry) for entry in decision], [LocalOnly])
        self.assertEqual(decision[0].nomad_ref.key, stale.key)

        b.sync()
        self.assertEqual(b.nomad_refs(), {a.nomad_ref("master"), b.nomad_ref("master")})
        self.assertEqual(self.sandbox.remote_nomad_refs(), {a.nomad_ref("master"), b.nomad_ref("master")})

    def test_new_commits_move_tracking_refs(self) -> None:
        a, b = self.host_a, self.host_b
        a.sync()
        a.commit("more work")
        a.sync()
        b.sync()

        self.assertIn(a.nomad_ref("master"), b.nomad_refs())

    def test_branches_with_slashes(self) -> None:
        a, b = self.host_a, self.host_b
        a.create_branch("feature/nested/x")
        a.sync()
        b.sync()

        self.assertIn(a.nomad_ref("feature/nested/x"), b.nomad_refs())

    def test_sync_recovers_from_interrupted_prune(self) -> None:
        a = self.host_a
        a.create_branch("feature")
        a.sync()
        a.delete_branch("feature")
        # Simulate a run that deleted the remote ref and died before the local delete.
        a.repo.push(a.remote, [":refs/nomad/user0/hostA/feature"])

        a.sync()

        self.assertEqual(a.nomad_refs(), {a.nomad_ref("master")})
        self.assertEqual(self.sandbox.remote_nomad_refs(), {a.nomad_ref("master")})

    def test_purge_selected_host(self) -> None:
        a, b = self.host_a, self.host_b
        a.sync()
        b.sync()

        b.purge(Filter.allow([Host("hostA")]))

        self.assertEqual(self.sandbox.remote_nomad_refs(), {b.nomad_ref("master")})
        self.assertEqual(b.nomad_refs(), {b.nomad_ref("master")})

    def test_purge_all(self) -> None:
        a, b = self.host_a, self.host_b
        a.sync()
        b.sync()

        b.purge(Filter.all())

        self.assertEqual(self.sandbox.remote_nomad_refs(), set())
        self.assertEqual(b.nomad_refs(), set())

    def test_users_do_not_see_each_other(self) -> None:
        a = self.host_a
        other = self.sandbox.clone("hostC", user="user1")
        a.sync()
        other.sync()

        self.assertEqual(other.nomad_refs(), {other.nomad_ref("master")})
        self.assertEqual(
            self.sandbox.remote_nomad_refs(),
            {a.nomad_ref("master"), other.nomad_ref("master")},
        )


if __name__ == "__main__":
    unittest.main()
