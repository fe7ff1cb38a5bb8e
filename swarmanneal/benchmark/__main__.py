# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import argparse
import logging
import warnings
from pathlib import Path
from concurrent import futures
import pandas as pd
import swarmanneal.common.typing as tp
from swarmanneal.common import errors
from . import core


logger = logging.getLogger(__name__)


# pylint: disable=too-many-arguments
def launch(
    optimizer: str,
    functions: tp.Optional[tp.List[str]] = None,
    dimension: int = 40,
    instance: int = 2023,
    seed: tp.Optional[int] = None,
    restarts: int = 4,
    num_workers: int = 1,
    output: tp.Optional[tp.PathLike] = None,
    refinements: int = 0,
) -> pd.DataFrame:
    """Runs the optimizer on the benchmark functions, saves the result if an output
    path is provided, and returns the result dataframe.
    """
    if num_workers > restarts:
        warnings.warn(f"Only {restarts} restart(s) can run concurrently, {num_workers} workers is too many.",
                      errors.InefficientSettingsWarning)
    kwargs = dict(functions=functions, dimension=dimension, instance=instance, seed=seed, restarts=restarts)
    if refinements:
        if optimizer != "firefly":
            raise errors.ConfigurationError(f"Refinement runs are only available for firefly, not {optimizer}")
        kwargs["refinements"] = refinements
    if num_workers == 1:
        df = core.compute(optimizer, **kwargs)  # type: ignore
    else:
        with futures.ThreadPoolExecutor(max_workers=num_workers) as executor:
            df = core.compute(optimizer, executor=executor, **kwargs)  # type: ignore
    if output is not None:
        core.save_or_append_to_csv(df, Path(output))
        logger.info("Saved data to %s", output)
    return df


def get_args(argv: tp.Optional[tp.List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run an optimizer on the benchmark functions and report the results.")
    parser.add_argument("optimizer", type=str, choices=sorted(core.optimizers), help="name of the optimizer to run")
    parser.add_argument(
        "--functions",
        type=str,
        nargs="+",
        default=None,
        help="Names of the functions to optimize (default: all registered functions)",
    )
    parser.add_argument("--dimension", type=int, default=40, help="Dimension of the problems")
    parser.add_argument("--instance", type=int, default=2023, help="Instance of the problems (optimum location and offset)")
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Use a seed for reproducibility",
    )
    parser.add_argument("--restarts", type=int, default=4, help="Number of independent runs on each function")
    parser.add_argument(
        "--refinements",
        type=int,
        default=0,
        help="Number of firefly refinement runs seeded at the best point found by the restarts",
    )
    parser.add_argument(
        "--num_workers",
        type=int,
        default=1,
        help="Number of threads running independent restarts concurrently",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output path for the CSV file. Existing files are appended",
    )
    return parser.parse_args(argv)


def main(argv: tp.Optional[tp.List[str]] = None) -> pd.DataFrame:
    args = get_args(argv)
    return launch(
        args.optimizer,
        functions=args.functions,
        dimension=args.dimension,
        instance=args.instance,
        seed=args.seed,
        restarts=args.restarts,
        num_workers=args.num_workers,
        output=args.output,
        refinements=args.refinements,
    )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    df = main()
    print(df.to_string(index=False))
