"""CLI command for per-band impulse detection from STFT .npy files."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

import typer

from ...global_config import IMPULSES_DIR, STFT_DIR
from ...pipeline.detect import (
    DEFAULT_HOP_SIZE,
    DEFAULT_SAMPLE_RATE,
    run_detection,
)
from ..base import BaseCLI

app = typer.Typer(
    name="detect",
    help="Detect per-band impulses in STFT .npy files and write JSON to data/derived/impulses",
    context_settings={"allow_interspersed_args": True},
)


@app.callback(invoke_without_command=True)
def detect(
    files: Annotated[
        list[Path],
        typer.Argument(
            help="STFT .npy file(s) (frames x bins). If omitted, all .npy in data/derived/stft are used.",
        ),
    ] = [],
    bands: Annotated[
        str,
        typer.Option("--bands", "-b", help="Band set name under data/bands, or a YAML path. Default: default."),
    ] = "default",
    mode: Annotated[
        str,
        typer.Option(
            "--mode",
            "-m",
            help="Detection mode: spectral-flux, first-derivative, second-derivative, z-score.",
        ),
    ] = "spectral-flux",
    sample_rate: Annotated[
        float,
        typer.Option("--sample-rate", "-r", help="Audio sample rate in Hz."),
    ] = DEFAULT_SAMPLE_RATE,
    hop_size: Annotated[
        int,
        typer.Option("--hop-size", "-H", help="Hop size in samples between frames."),
    ] = DEFAULT_HOP_SIZE,
    window: Annotated[
        int | None,
        typer.Option("--window", "-w", help="Derivative window in frames."),
    ] = None,
    smoothing: Annotated[
        int | None,
        typer.Option("--smoothing", "-s", help="Trailing smoothing window in frames."),
    ] = None,
    estimator: Annotated[
        str | None,
        typer.Option("--estimator", "-d", help="Derivative estimator: forward, centered, moving-average."),
    ] = None,
    linear: Annotated[
        bool,
        typer.Option("--linear", help="Compute derivatives and flux on linear magnitude instead of log10."),
    ] = False,
    flux_window: Annotated[
        int | None,
        typer.Option("--flux-window", help="Moving median/MAD window for spectral flux."),
    ] = None,
    flux_k: Annotated[
        float | None,
        typer.Option("--flux-k", help="MAD multiplier for the spectral flux threshold."),
    ] = None,
    min_separation: Annotated[
        int | None,
        typer.Option("--min-separation", help="Minimum frames between accepted flux impulses."),
    ] = None,
    min_db: Annotated[
        float | None,
        typer.Option("--min-db", help="Minimum level (dB) for sustained impulses."),
    ] = None,
    min_db_delta: Annotated[
        float | None,
        typer.Option("--min-db-delta", help="Minimum dB rise into a sustained impulse."),
    ] = None,
    sustain_frames: Annotated[
        int | None,
        typer.Option("--sustain-frames", help="Look-ahead frames a sustained impulse must hold."),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be written without writing files."),
    ] = False,
    no_log: Annotated[
        bool,
        typer.Option("--no-log", help="Do not write a log file to data/logs/derived."),
    ] = False,
) -> None:
    """Detect per-band impulses and write results to data/derived/impulses.

    Output filenames: <track-name>_impulses_<mode>.json
    Running the same mode again overwrites the previous output.
    """
    cli = BaseCLI("detect")

    stft_list = list(files) if files else None
    overrides: dict[str, Any] = {
        "impulseWindowSize": window,
        "impulseSmoothing": smoothing,
        "derivativeMode": estimator,
        "derivativeLogDomain": False if linear else None,
        "spectralFluxWindow": flux_window,
        "spectralFluxK": flux_k,
        "spectralFluxMinSeparation": min_separation,
        "minDb": min_db,
        "minDbDelta": min_db_delta,
        "sustainDurationFrames": sustain_frames,
    }

    def _run() -> dict:
        return run_detection(
            stft_files=stft_list,
            output_dir=IMPULSES_DIR,
            stft_dir=STFT_DIR,
            bands=bands,
            sample_rate=sample_rate,
            hop_size=hop_size,
            mode=mode.lower(),
            overrides=overrides,
            dry_run=dry_run,
        )

    pre_message = (
        "Detecting impulses (dry-run; no files will be written)..."
        if dry_run
        else f"Detecting {mode} impulses for "
        + (f"{len(stft_list)} file(s)..." if stft_list else "all STFT files in stft folder...")
    )
    cli.handle_cli_operation(
        operation="detect",
        op_callable=_run,
        pre_message=pre_message,
        log_module="detect",
        log_method=mode.lower(),
        log_dry_run=dry_run,
        enable_log=not no_log,
        log_context={
            "inputs": str([str(p) for p in stft_list]) if stft_list else f"all .npy in {STFT_DIR}",
            "bands": bands,
            "output_dir": str(IMPULSES_DIR),
        },
    )
