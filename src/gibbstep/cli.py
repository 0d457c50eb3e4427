"""Command-line entrypoints for GibbsStep."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Annotated, Any, Dict, List

import numpy as np
import typer

from gibbstep.adjust import rxn_adjust
from gibbstep.line_search import line_search
from gibbstep.models import AdjustmentOptions, EquilibriumState, build_state
from gibbstep.persistence import sqlite_store
from gibbstep.residual import delta_g_recalc
from gibbstep.thermo import (
    IdealSolutionPhase,
    PhaseActivityModel,
    RegularSolutionPhase,
    SingleSpeciesPhase,
)

app = typer.Typer(add_completion=False)


def _parse_phase(data: Dict[str, Any], species_index: Dict[str, int]) -> PhaseActivityModel:
    name = data["name"]
    model = data.get("model", "ideal").lower()
    try:
        indices = [species_index[s] for s in data["species"]]
    except KeyError as exc:
        raise ValueError(f"Phase {name!r} lists unknown species {exc.args[0]!r}") from None
    g0 = [float(v) for v in data.get("g0", [0.0] * len(indices))]

    if model == "ideal":
        return IdealSolutionPhase(name, indices, g0)
    elif model == "regular":
        return RegularSolutionPhase(name, indices, g0, data["interaction"])
    elif model in ("pure", "single"):
        if len(indices) != 1:
            raise ValueError(f"Pure phase {name!r} must hold exactly one species.")
        return SingleSpeciesPhase(name, indices[0], g0[0])
    else:
        raise ValueError(f"Unknown phase model: {model}")


def _parse_options(data: Dict[str, Any]) -> AdjustmentOptions:
    known = AdjustmentOptions.__dataclass_fields__
    unknown = set(data) - set(known)
    if unknown:
        raise ValueError(f"Unknown options: {sorted(unknown)}")
    return AdjustmentOptions(**data)


def load_problem(config: Dict[str, Any]) -> EquilibriumState:
    """Build an iteration state from a problem description and fill in dg."""
    species: List[str] = list(config["species"])
    species_index = {name: k for k, name in enumerate(species)}
    phases = [_parse_phase(p, species_index) for p in config["phases"]]
    moles_map = config.get("moles", {})
    moles = [float(moles_map.get(s, 0.0)) for s in species]

    state = build_state(
        phases,
        config["stoichiometry"],
        moles,
        sp_status=config.get("status"),
        species_names=species,
        options=_parse_options(config.get("options", {})),
    )
    for irxn in range(state.n_rxn):
        state.dg[irxn] = delta_g_recalc(state, irxn, state.mole_numbers, state.act_coeff, state.fe_species_old)
    return state


def _read_problem(problem_file: Path) -> tuple[Dict[str, Any], EquilibriumState]:
    with open(problem_file, "r") as f:
        config = json.load(f)
    try:
        return config, load_problem(config)
    except (KeyError, ValueError) as exc:
        raise typer.BadParameter(f"{problem_file}: {exc}") from exc


@app.callback()
def main(
    log_level: Annotated[str, typer.Option(help="Logging level (DEBUG, INFO, WARNING).")] = "WARNING",
) -> None:
    """Reaction adjustment step of a multiphase Gibbs free energy minimizer."""
    logging.basicConfig(level=log_level.upper(), format="%(levelname)s: %(name)s: %(message)s")


@app.command()
def residual(
    problem_file: Annotated[Path, typer.Argument(help="Path to JSON problem file.")],
) -> None:
    """Print the driving force of every formation reaction."""
    _, state = _read_problem(problem_file)
    payload = {
        state.species_names[state.ir[irxn]]: float(state.dg[irxn]) for irxn in range(state.n_rxn)
    }
    typer.echo(json.dumps(payload, indent=2))


@app.command()
def adjust(
    problem_file: Annotated[Path, typer.Argument(help="Path to JSON problem file.")],
    output: Annotated[Path | None, typer.Option(help="Path to save output JSON.")] = None,
    search: Annotated[bool, typer.Option("--line-search/--no-line-search", help="Refine each step.")] = True,
    project_file: Annotated[
        Path | None,
        typer.Option(help="Optional SQLite project file to persist results."),
    ] = None,
) -> None:
    """Run one reaction adjustment pass and report the proposed steps."""
    config, state = _read_problem(problem_file)
    dg_start = state.dg.copy()

    status = rxn_adjust(state)

    steps = []
    for irxn in range(state.n_rxn):
        kspec = state.ir[irxn]
        step: Dict[str, Any] = {
            "species": state.species_names[kspec],
            "dg": float(dg_start[irxn]),
            "ds": float(state.ds[kspec]),
            "dx": None,
            "note": "",
        }
        if search and status == 0 and state.ds[kspec] != 0.0:
            result = line_search(state, irxn, float(state.ds[kspec]))
            step["dx"] = result.step
            step["note"] = result.note
        steps.append(step)

    payload = {
        "status": int(status),
        "steps": steps,
        "moles": {name: float(n) for name, n in zip(state.species_names, state.mole_numbers)},
        "phase_moles": {p.name: float(n) for p, n in zip(state.phases, state.phase_moles)},
    }

    if project_file is not None:
        connection = sqlite_store.connect(project_file)
        sqlite_store.ensure_schema(connection)
        project_id = sqlite_store.create_project(
            connection,
            name=problem_file.stem,
            notes="Autogenerated from GibbsStep CLI adjust.",
        )
        problem_id = sqlite_store.save_problem(
            connection,
            project_id=project_id,
            species=state.species_names,
            phases=config["phases"],
            stoich=np.asarray(state.stoich).tolist(),
            moles=config.get("moles", {}),
        )
        run_id = sqlite_store.save_run(
            connection,
            problem_id=problem_id,
            status=int(status),
            options=asdict(state.options),
            manifest={"moles": payload["moles"], "line_search": search},
        )
        sqlite_store.save_steps(connection, run_id=run_id, steps=steps)
        connection.close()

    json_output = json.dumps(payload, indent=2)
    typer.echo(json_output)

    if output:
        with open(output, "w") as f:
            f.write(json_output)


if __name__ == "__main__":
    app()
