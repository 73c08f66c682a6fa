r"""Command line driver of the identification pipeline.

Example:
    kikuchi data cluster/A2-T.txt cluster/B2-T.txt A2-SG B2-SG \
        --output b2.json --composition 0.5 0.5 --temperature 1.0 \
        --eci 0 0 0 0.1 0 0
"""

import argparse
import logging

import numpy as np

from kikuchi.io import save_work
from kikuchi.pipeline import CVMConfiguration, CVMPipeline


def build_parser():
    """Build the argument parser of the kikuchi command."""
    parser = argparse.ArgumentParser(
        "kikuchi",
        description="Identify CVM clusters and correlation functions of an "
        "ordered phase and build its C-matrices.",
    )
    parser.add_argument("data_dir", help="Directory holding the resource files.")
    parser.add_argument(
        "disordered_clusters", help="Disordered maximal cluster file (relative)."
    )
    parser.add_argument(
        "ordered_clusters", help="Ordered maximal cluster file (relative)."
    )
    parser.add_argument("disordered_group", help="Disordered symmetry group name.")
    parser.add_argument("ordered_group", help="Ordered symmetry group name.")
    parser.add_argument(
        "--components",
        help="Number of chemical components (default: 2)",
        type=int,
        default=2,
    )
    parser.add_argument(
        "--transform",
        help="Ordered to disordered transform: 9 matrix entries (row major) "
        "followed by 3 translation entries (default: identity)",
        type=float,
        nargs=12,
        default=None,
    )
    parser.add_argument(
        "--lenient",
        help="Drop unmatched ordered clusters with a warning instead of failing",
        action="store_true",
    )
    parser.add_argument(
        "--output", help="JSON file to save the results to", type=str, default=None
    )
    parser.add_argument(
        "--composition",
        help="Species fractions used for free energy minimization",
        type=float,
        nargs="+",
        default=None,
    )
    parser.add_argument(
        "--temperature", help="Temperature, in ECI units", type=float, default=None
    )
    parser.add_argument(
        "--eci",
        help="ECI of each non-point correlation function",
        type=float,
        nargs="+",
        default=None,
    )
    parser.add_argument(
        "-v", "--verbose", help="Log progress information", action="store_true"
    )
    return parser


def main(argv=None):
    """Run the pipeline from command line arguments.

    Args:
        argv (list of str): optional
            arguments, sys.argv[1:] if not given.

    Returns:
        int: exit status
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.INFO)

    minimization = (args.composition, args.temperature, args.eci)
    if any(arg is not None for arg in minimization) and None in minimization:
        parser.error("--composition, --temperature and --eci must be given together")

    kwargs = {"num_components": args.components}
    if args.transform is not None:
        kwargs["transformation_matrix"] = np.reshape(args.transform[:9], (3, 3))
        kwargs["translation_vector"] = args.transform[9:]
    config = CVMConfiguration(
        args.disordered_clusters,
        args.ordered_clusters,
        args.disordered_group,
        args.ordered_group,
        **kwargs,
    )
    pipeline = CVMPipeline(config, args.data_dir, strict=not args.lenient)
    result = pipeline.identify()
    cmat_result = pipeline.build_cmatrix(result)

    cluster_result = result.cluster_identification
    cf_result = result.cf_identification
    print(f"Disordered cluster types: {cluster_result.tcdis}")
    print(f"Kikuchi-Baker coefficients: {cluster_result.kb_coefficients}")
    print(f"Ordered cluster types per disordered type: {cluster_result.lc}")
    print(f"Correlation functions: {cf_result.tcf} ({cf_result.ncf} non-point)")
    print(f"Cluster variables: {cmat_result.lcv}")

    msonables = [cluster_result, cf_result, cmat_result]
    if args.temperature is not None:
        solver_result = pipeline.minimize_free_energy(
            args.composition,
            args.temperature,
            args.eci,
            result=result,
            cmat_result=cmat_result,
        )
        status = "converged" if solver_result.converged else "did not converge"
        print(
            f"Free energy minimization {status} in {solver_result.iterations} "
            f"iterations: G = {solver_result.gibbs_energy:.10g}, "
            f"H = {solver_result.enthalpy:.10g}, S = {solver_result.entropy:.10g}"
        )
        msonables.append(solver_result)

    if args.output is not None:
        save_work(args.output, *msonables)
        print(f"Saved results to {args.output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
