import json
import sqlite3
import tempfile
import unittest
from pathlib import Path

from typer.testing import CliRunner

from gibbstep.cli import app, load_problem

PROBLEM = {
    "species": ["A", "B", "C"],
    "phases": [
        {"name": "gas", "model": "ideal", "species": ["A", "C"], "g0": [0.0, -1.0]},
        {"name": "solid", "model": "pure", "species": ["B"], "g0": [0.0]},
    ],
    "stoichiometry": [[-1.0, 0.0]],
    "moles": {"A": 1.0, "B": 1.0, "C": 1.0},
}


class TestCli(unittest.TestCase):
    def setUp(self):
        self.runner = CliRunner()
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.problem_file = Path(self.tmp.name) / "problem.json"
        self.problem_file.write_text(json.dumps(PROBLEM))

    def test_load_problem_fills_driving_force(self):
        state = load_problem(PROBLEM)
        self.assertAlmostEqual(state.dg[0], -1.0)
        self.assertEqual(state.species_names, ["A", "B", "C"])

    def test_residual(self):
        result = self.runner.invoke(app, ["residual", str(self.problem_file)])
        self.assertEqual(result.exit_code, 0, result.output)
        payload = json.loads(result.stdout)
        self.assertAlmostEqual(payload["C"], -1.0)

    def test_adjust_with_line_search(self):
        project_file = Path(self.tmp.name) / "runs.sqlite"
        output = Path(self.tmp.name) / "out.json"
        result = self.runner.invoke(
            app,
            ["adjust", str(self.problem_file), "--output", str(output), "--project-file", str(project_file)],
        )
        self.assertEqual(result.exit_code, 0, result.output)
        payload = json.loads(output.read_text())
        self.assertEqual(payload["status"], 0)
        step = payload["steps"][0]
        self.assertEqual(step["species"], "C")
        self.assertAlmostEqual(step["ds"], 0.5)
        # deltaG changes sign before the full step, so the search shortens it
        self.assertGreater(step["dx"], 0.0)
        self.assertLess(step["dx"], 0.5)

        connection = sqlite3.connect(project_file)
        rows = connection.execute("SELECT species, ds, dx FROM step").fetchall()
        status = connection.execute("SELECT status FROM run").fetchone()[0]
        connection.close()
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0][0], "C")
        self.assertEqual(status, 0)

    def test_adjust_without_line_search(self):
        result = self.runner.invoke(app, ["adjust", str(self.problem_file), "--no-line-search"])
        self.assertEqual(result.exit_code, 0, result.output)
        payload = json.loads(result.stdout)
        self.assertIsNone(payload["steps"][0]["dx"])
        self.assertAlmostEqual(payload["moles"]["C"], 1.0)

    def test_unknown_phase_model_is_rejected(self):
        bad = dict(PROBLEM, phases=[dict(PROBLEM["phases"][0], model="vdw"), PROBLEM["phases"][1]])
        bad_file = Path(self.tmp.name) / "bad.json"
        bad_file.write_text(json.dumps(bad))
        result = self.runner.invoke(app, ["adjust", str(bad_file)])
        self.assertNotEqual(result.exit_code, 0)


if __name__ == "__main__":
    unittest.main()
