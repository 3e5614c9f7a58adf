# facerec/cross_validation.py
import pandas as pd

import config
from facerec.database import Database
from facerec.distance import get_distance
from facerec.metrics import (
    results_to_labels, compute_recognition_metrics, compare_algorithms_metrics
)
from facerec.preprocessing import split_observation


def evaluate_database(db, test_corpus, algorithms=None, distance=config.DEFAULT_DISTANCE):
    """
    Recognize every test image with each trained algorithm.

    Returns:
        dict: algorithm -> (metrics dict, list of RecognitionResult)
    """
    if algorithms is None:
        algorithms = db.algorithms
    dist_func = get_distance(distance)

    evaluation = {}
    for algorithm in algorithms:
        results = db.recognize_corpus(test_corpus, algorithm, dist_func)
        y_true, y_pred, _ = results_to_labels(results)
        evaluation[algorithm] = (compute_recognition_metrics(y_true, y_pred), results)
    return evaluation


def run_cross_validation(corpus, start=config.CV_START, end=config.CV_END,
                         lda=False, ica=False, distance=config.DEFAULT_DISTANCE,
                         n_components=None, provider=None, verbose=config.VERBOSE):
    """
    k-fold study holding out one observation of every class per fold.

    Fold i trains on every image except the i-th of each class and recognizes
    the held-out images, for i in [start, end].

    Returns:
        pd.DataFrame: one row per (fold, algorithm), sorted by fold
    """
    if verbose:
        print(f"Performing k-fold cross-validation on the range [{start}, {end}]")

    metrics_list = []
    for fold in range(start, end + 1):
        train, test = split_observation(corpus, fold)
        if len(test) == 0:
            if verbose:
                print(f"  Fold {fold}: no class has a {fold}-th image, skipped")
            continue

        if verbose:
            print(f"\n--- Fold {fold}: {len(train)} train / {len(test)} test ---")

        db = Database(provider=provider).train(train, lda=lda, ica=ica, n_components=n_components)
        evaluation = evaluate_database(db, test, distance=distance)

        for algorithm, (metrics, _) in evaluation.items():
            metrics_list.append((algorithm, distance, fold, metrics))
            if verbose:
                print(f"  {algorithm.upper()}: accuracy {metrics['accuracy']:.4f} "
                      f"({round(metrics['accuracy'] * metrics['n_samples'])}/{metrics['n_samples']})")

    df_results = compare_algorithms_metrics(metrics_list)
    if df_results.empty:
        return df_results
    return df_results.sort_values(["fold", "algorithm"], kind="stable").reset_index(drop=True)


def cross_validation_summary(df_results):
    """Accuracy per algorithm averaged over folds, as in a final report line."""
    if df_results.empty:
        return pd.DataFrame(columns=["algorithm", "mean_accuracy", "folds"])
    grouped = df_results.groupby("algorithm")
    return pd.DataFrame({
        "mean_accuracy": grouped["accuracy"].mean(),
        "folds": grouped["fold"].nunique()
    }).reset_index()
