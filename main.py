import argparse
import logging
import sys

from svdrec.dataset import SAMPLE_COLS, SAMPLE_DATA, SAMPLE_ROWS, InteractionMatrix, build_interaction_matrix
from svdrec.errors import RecommenderError
from svdrec.factorize import LinalgBackend
from svdrec.pipeline import approximate
from svdrec.recommend import recommend
from svdrec.utils import format_matrix, max_abs_error, observed_rmse


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Item recommendations from an SVD of the user-item matrix")
    parser.add_argument("--data_csv", type=str, default="",
                        help="Optional CSV of interactions with columns [userId,itemId,rating]. "
                             "Defaults to the built-in 5x4 sample matrix")
    parser.add_argument("--user", type=int, default=1, help="0-based row index of the user to recommend for")
    parser.add_argument("--top_n", type=int, default=0, help="Keep only the first N recommendations. 0 = all")
    parser.add_argument("--device", type=str, default="cpu", choices=["cpu", "cuda", "auto"],
                        help="Device for the decomposition. auto = cuda when available")
    parser.add_argument("--dtype", type=str, default="float64", choices=["float32", "float64"],
                        help="Precision of the decomposition")
    parser.add_argument("--tie_tol", type=float, default=None,
                        help="Scores closer than this rank as ties (lower item index first). "
                             "Default: derived from the float precision and the matrix scale")
    parser.add_argument("--show_matrix", action="store_true", help="Print the approximated matrix")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        backend = LinalgBackend.from_names(args.device, args.dtype)

        # Load interaction matrix
        item_ids = None
        if args.data_csv:
            ds = InteractionMatrix(args.data_csv, dtype=backend.dtype)
            R = ds.R
            item_ids = ds.index_to_item_id
        else:
            R = build_interaction_matrix(SAMPLE_DATA, SAMPLE_ROWS, SAMPLE_COLS, dtype=backend.dtype)

        R_hat = approximate(R, backend).cpu()

        if args.show_matrix:
            print("Approximated Matrix:")
            print(format_matrix(R_hat))
            print(f"Max abs error: {max_abs_error(R, R_hat):.3e} | Observed RMSE: {observed_rmse(R, R_hat):.3e}")

        recommended = recommend(args.user, R, R_hat, tol=args.tie_tol)
    except (RecommenderError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if args.top_n > 0:
        recommended = recommended[: args.top_n]

    print(f"Recommended items for user {args.user + 1}: {recommended}")
    if item_ids is not None:
        print(f"Item ids: {[item_ids[j] for j in recommended]}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
