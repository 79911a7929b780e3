import json
import os
import tempfile

from click.testing import CliRunner

from digitmesh import cli
from digitmesh.bbp import local_sum
from digitmesh.cli import main
from digitmesh.group import MpiGroup
from digitmesh.partition import owned_terms
from digitmesh.planner import make_context, plan
from digitmesh.transport import deserialize, serialize


def test_compute_quiet():
    r = CliRunner().invoke(main, ["compute", "--digits", "20", "--quiet"])
    assert r.exit_code == 0, r.output
    assert r.output.strip() == "3.14159265358979323846"


def test_compute_report():
    r = CliRunner().invoke(main, ["compute", "--digits", "60", "--verify"])
    assert r.exit_code == 0, r.output
    assert "processes: 1" in r.output
    assert "terms: 70" in r.output
    assert "working bits: 274" in r.output
    assert "3.1415926535 8979323846 2643383279 5028841971 6939937510\n  5820974944" in r.output
    assert "verified" in r.output
    assert "elapsed: " in r.output


def test_compute_default_digits():
    r = CliRunner().invoke(main, ["compute", "--quiet"])
    assert r.exit_code == 0, r.output
    assert len(r.output.strip().split(".")[1]) == 100


def test_compute_rejects_bad_digits():
    for value in ("0", "-4"):
        r = CliRunner().invoke(main, ["compute", "--digits", value])
        assert r.exit_code == 1
        assert r.output.count("--digits must be >= 1") == 1


def test_compute_writes_json():
    with tempfile.TemporaryDirectory() as td:
        path = os.path.join(td, "pi.json")
        r = CliRunner().invoke(main, ["compute", "--digits", "15", "--format", "json", "--out", path, "--quiet"])
        assert r.exit_code == 0, r.output
        with open(path, "rb") as f:
            payload = json.loads(f.read().decode("utf-8"))
        assert payload["value"] == "3.141592653589793"
        assert payload["digits"] == 15
        assert payload["terms"] == 25


def test_env_override():
    r = CliRunner().invoke(main, ["compute", "--quiet"], env={"DIGITMESH_COMPUTE_DIGITS": "5"})
    assert r.exit_code == 0, r.output
    assert r.output.strip() == "3.14159"


def test_plan_command():
    r = CliRunner().invoke(main, ["plan", "--digits", "100"])
    assert r.exit_code == 0, r.output
    assert "working bits: 414" in r.output
    assert "terms: 110" in r.output
    assert "buffer size: 220" in r.output


class FakeComm:
    def __init__(self, rank, size, inbox=None):
        self.rank = rank
        self.size = size
        self.inbox = dict(inbox or {})
        self.sent = []
        self.barriers = 0

    def Get_rank(self):
        return self.rank

    def Get_size(self):
        return self.size

    def Send(self, buf, dest, tag):
        self.sent.append((dest, bytes(buf)))

    def Recv(self, buf, source, tag):
        data = self.inbox.pop(source)
        buf[: len(data)] = data

    def Barrier(self):
        self.barriers += 1


def _use_comm(monkeypatch, comm):
    monkeypatch.setattr(cli, "MpiGroup", lambda: MpiGroup(comm))


def test_mpi_worker_rejects_bad_digits_silently(monkeypatch):
    comm = FakeComm(1, 4)
    _use_comm(monkeypatch, comm)
    r = CliRunner().invoke(main, ["mpi", "--digits", "0"])
    assert r.exit_code == 1
    assert r.output == ""
    assert comm.sent == []
    assert comm.barriers == 0


def test_mpi_coordinator_reports_bad_digits_once(monkeypatch):
    comm = FakeComm(0, 4)
    _use_comm(monkeypatch, comm)
    r = CliRunner().invoke(main, ["mpi", "--digits", "-2"])
    assert r.exit_code == 1
    assert r.output.count("usage:") == 1
    assert comm.barriers == 0


def test_mpi_worker_sends_partial_sum(monkeypatch):
    comm = FakeComm(1, 2)
    _use_comm(monkeypatch, comm)
    r = CliRunner().invoke(main, ["mpi", "--digits", "20"])
    assert r.exit_code == 0, r.output
    assert r.output == ""
    p = plan(20)
    ctx = make_context(p)
    expected = local_sum(owned_terms(1, 2, p.term_count), ctx)
    [(dest, payload)] = comm.sent
    assert dest == 0
    assert abs(deserialize(payload, ctx) - expected) < ctx.mpf(10) ** -30


def test_mpi_coordinator_aggregates(monkeypatch):
    p = plan(20)
    ctx = make_context(p)
    inbox = {rank: serialize(local_sum(owned_terms(rank, 3, p.term_count), ctx), p.digits) for rank in (1, 2)}
    comm = FakeComm(0, 3, inbox)
    _use_comm(monkeypatch, comm)
    r = CliRunner().invoke(main, ["mpi", "--digits", "20", "--quiet"])
    assert r.exit_code == 0, r.output
    assert r.output.strip() == "3.14159265358979323846"
    assert comm.inbox == {}
    assert comm.barriers == 1
