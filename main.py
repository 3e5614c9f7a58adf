# main.py
import argparse
import logging
import sys

import config
from facerec.cross_validation import run_cross_validation, cross_validation_summary, evaluate_database
from facerec.database import Database
from facerec.exceptions import FaceRecError
from facerec.metrics import (
    results_to_labels, calculate_confidence_intervals, compare_algorithms_metrics,
    print_metrics_summary, save_metrics_to_json
)
from facerec.preprocessing import load_image_directory, load_lfw_corpus
from facerec.providers import set_default_provider
from facerec.utils import (
    setup_logging, plot_mean_face, plot_basis, plot_confusion_matrix, plot_cross_validation,
    save_model
)

logger = logging.getLogger("main")


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Train and evaluate PCA / LDA / ICA face recognition',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    # Data
    parser.add_argument('--train', type=str, default=None,
                        help='Training image directory (one subdirectory per person)')
    parser.add_argument('--rec', type=str, default=None,
                        help='Test image directory to recognize')
    parser.add_argument('--lfw', action='store_true',
                        help='Train on the LFW dataset instead of --train')

    # Algorithms
    parser.add_argument('--lda', action='store_true', help='Also train LDA')
    parser.add_argument('--ica', action='store_true', help='Also train ICA')
    parser.add_argument('--all', action='store_true', help='Train PCA, LDA and ICA')
    parser.add_argument('--components', type=int, default=config.PCA_N_COMPONENTS,
                        help='PCA components (default: number of images - 1)')
    parser.add_argument('--distance', type=str, default=config.DEFAULT_DISTANCE,
                        choices=['l1', 'l2', 'cos'], help='Distance used for recognition')
    parser.add_argument('--provider', type=str, default=config.LINALG_PROVIDER,
                        choices=['numpy', 'torch'], help='Linear algebra provider')

    # Persistence
    parser.add_argument('--save', nargs=2, metavar=('TSET', 'TDATA'), default=None,
                        help='Save the trained database')
    parser.add_argument('--load', nargs=2, metavar=('TSET', 'TDATA'), default=None,
                        help='Load a trained database instead of training')

    # Studies and output
    parser.add_argument('--cross-validate', nargs=2, type=int, metavar=('START', 'END'),
                        default=None, help='Hold out observations START..END of each class')
    parser.add_argument('--plots', action='store_true', help='Save figures')
    parser.add_argument('--quiet', action='store_true', help='Only log warnings to the console')

    args = parser.parse_args(argv)
    if args.all:
        args.lda = args.ica = True
    if args.load is None and args.train is None and not args.lfw:
        parser.error('one of --train, --lfw or --load is required')
    if args.cross_validate is not None and args.train is None and not args.lfw:
        parser.error('--cross-validate needs --train or --lfw')
    return args


def load_training_corpus(args):
    if args.lfw:
        return load_lfw_corpus(verbose=not args.quiet)
    return load_image_directory(args.train, verbose=not args.quiet)


def run(args):
    verbose = not args.quiet
    corpus = None
    if verbose:
        config.print_config()

    # 1. DATA LOADING
    if args.train is not None or args.lfw:
        print("\n1. DATA LOADING")
        corpus = load_training_corpus(args)

    # 2. CROSS-VALIDATION
    if args.cross_validate is not None:
        print("\n2. CROSS-VALIDATION")
        start, end = args.cross_validate
        df_cv = run_cross_validation(corpus, start, end, lda=args.lda, ica=args.ica,
                                     distance=args.distance, n_components=args.components,
                                     verbose=verbose)
        df_cv.to_csv(f"{config.METRICS_PATH}/cross_validation.csv", index=False)
        print("\nCross-validation results:")
        print(df_cv.to_string(index=False))
        print("\nSummary:")
        print(cross_validation_summary(df_cv).to_string(index=False))
        if args.plots and not df_cv.empty:
            plot_cross_validation(df_cv)
        if args.rec is None and args.save is None:
            return 0

    # 3. TRAINING
    if args.load is not None:
        print("\n3. LOADING DATABASE")
        db = Database.load(*args.load)
    else:
        print("\n3. TRAINING")
        db = Database().train(corpus, lda=args.lda, ica=args.ica, n_components=args.components)
    print(db)

    if args.save is not None:
        db.save(*args.save)
        print(f"Database saved: {args.save[0]}, {args.save[1]}")
    elif args.load is None:
        save_model(db, "database_" + "_".join(db.algorithms))

    if args.plots and corpus is not None and corpus.image_shape is not None:
        h, w = corpus.image_shape
        plot_mean_face(db, h, w)
        plot_basis(db.W_pca_tr, h, w, name="Eigenface")
        if db.lda:
            plot_basis(db.W_lda_tr, h, w, name="Fisherface")
        print(f"Figures saved in {config.OUTPUT_PATH}")

    # 4. RECOGNITION
    if args.rec is None:
        return 0

    print("\n4. RECOGNITION")
    class_map = corpus.class_map() if corpus is not None else {
        entry.name.split("/", 1)[0]: entry.label for entry in db.entries
    }
    test = load_image_directory(args.rec, class_map=class_map, verbose=verbose)
    evaluation = evaluate_database(db, test, distance=args.distance)

    all_results = []
    for algorithm, (metrics, results) in evaluation.items():
        print(f"\n--- {algorithm.upper()} ---")
        for r in results:
            status = "" if r.expected.label == r.predicted.label else "  (!)"
            print(f"  {r.expected.name:30s} -> {r.predicted.name:30s} {r.distance:12.4f}{status}")

        y_true, y_pred, _ = results_to_labels(results)
        metrics['confidence_interval'] = calculate_confidence_intervals(y_true, y_pred)
        print_metrics_summary(metrics, f"{algorithm.upper()} ({args.distance})")
        save_metrics_to_json(metrics, f"{config.METRICS_PATH}/{algorithm}_{args.distance}.json")
        if args.plots:
            plot_confusion_matrix(y_true, y_pred, f"{algorithm.upper()} {args.distance}")

        all_results.append((algorithm, args.distance, None, metrics))

    df_comparison = compare_algorithms_metrics(
        all_results, save_path=f"{config.METRICS_PATH}/comparison.csv")
    print("\nComparison:")
    print(df_comparison.drop(columns=["fold"]).to_string(index=False))
    return 0


def main(argv=None):
    args = parse_args(argv)
    setup_logging(log_file=config.LOG_FILE, verbose=not args.quiet)
    set_default_provider(args.provider)

    try:
        return run(args)
    except FaceRecError as e:
        logger.error("%s: %s", e.__class__.__name__, e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
