"""
This module provides functions for scoring recognition runs and comparing
the PCA, LDA and ICA subspaces: accuracy, precision, recall, F1-score,
bootstrap confidence intervals and tabular comparisons.
"""

import json

import numpy as np
import pandas as pd
from sklearn.metrics import (
    accuracy_score, precision_score, recall_score, f1_score, confusion_matrix
)

import config


def results_to_labels(results):
    """
    Split RecognitionResult tuples into label arrays.

    Returns:
        tuple: (y_true, y_pred, distances) as numpy arrays
    """
    y_true = np.array([r.expected.label for r in results], dtype=int)
    y_pred = np.array([r.predicted.label for r in results], dtype=int)
    distances = np.array([r.distance for r in results], dtype=np.float64)
    return y_true, y_pred, distances


def compute_recognition_metrics(y_true, y_pred):
    """
    Compute classification metrics for a recognition run.

    Args:
        y_true: Ground truth labels array
        y_pred: Labels of the nearest training images

    Returns:
        dict: accuracy, macro and weighted precision/recall/F1, confusion matrix
    """
    metrics = {
        "n_samples": int(len(y_true)),
        "accuracy": float(accuracy_score(y_true, y_pred)),
    }

    # weighted averages account for classes with more test images
    for average in ("macro", "weighted"):
        for name, score in (("precision", precision_score), ("recall", recall_score), ("f1", f1_score)):
            metrics[f"{name}_{average}"] = float(score(y_true, y_pred, average=average, zero_division=0))

    metrics["confusion_matrix"] = confusion_matrix(y_true, y_pred).tolist()
    return metrics


def calculate_confidence_intervals(y_true, y_pred, n_bootstrap=1000, confidence_level=0.95,
                                   random_state=config.RANDOM_STATE):
    """
    Bootstrap a confidence interval for the recognition accuracy.

    Test images are resampled with replacement `n_bootstrap` times; the
    interval is read off the percentiles of the resampled accuracies.

    Returns:
        dict: mean accuracy, lower/upper bounds, confidence level and std
    """
    correct = np.asarray(y_true) == np.asarray(y_pred)
    if correct.size == 0:
        return {"accuracy": 0.0, "lower_bound": 0.0, "upper_bound": 0.0,
                "confidence_level": confidence_level, "std": 0.0}

    rng = np.random.default_rng(random_state)
    indices = rng.integers(0, correct.size, size=(n_bootstrap, correct.size))
    accuracies = correct[indices].mean(axis=1)

    tail = (1 - confidence_level) / 2 * 100
    lower_bound, upper_bound = np.percentile(accuracies, [tail, 100 - tail])

    return {
        "accuracy": float(accuracies.mean()),
        "lower_bound": float(lower_bound),
        "upper_bound": float(upper_bound),
        "confidence_level": confidence_level,
        "std": float(accuracies.std())
    }


_TABLE_COLUMNS = ("n_samples", "accuracy", "precision_macro", "recall_macro", "f1_macro", "f1_weighted")


def create_metrics_dataframe(metrics_dict, algorithm, distance, fold=None):
    """
    One table row for a recognition run.

    Args:
        metrics_dict: output of compute_recognition_metrics, optionally with
                      a "confidence_interval" entry
        algorithm: subspace used for recognition ("pca", "lda", "ica")
        distance: name of the distance function
        fold: held-out observation index, if part of a cross-validation
    """
    row = {"fold": fold, "algorithm": algorithm, "distance": distance}
    row.update({column: metrics_dict.get(column, np.nan) for column in _TABLE_COLUMNS})

    ci = metrics_dict.get("confidence_interval")
    if ci is not None:
        row["acc_lower"] = ci["lower_bound"]
        row["acc_upper"] = ci["upper_bound"]

    return pd.DataFrame([row])


def compare_algorithms_metrics(metrics_list, save_path=None):
    """
    Aggregate metrics from several recognition runs.

    Args:
        metrics_list: List of tuples (algorithm, distance, fold, metrics_dict)
        save_path: Optional CSV path for the resulting table

    Returns:
        pd.DataFrame: Combined DataFrame sorted by accuracy
    """
    dfs = [create_metrics_dataframe(m, algorithm, distance, fold)
           for algorithm, distance, fold, m in metrics_list]

    if not dfs:
        return pd.DataFrame()

    df_comparison = pd.concat(dfs, ignore_index=True)
    df_comparison = df_comparison.sort_values("accuracy", ascending=False, kind="stable")
    df_comparison = df_comparison.reset_index(drop=True)

    if save_path is not None:
        df_comparison.to_csv(save_path, index=False)

    return df_comparison


def save_metrics_to_json(metrics, path):
    with open(path, "w") as f:
        json.dump(metrics, f, indent=2, default=float)


def print_metrics_summary(metrics, title):
    print(f"\n{title}")
    print(f"  Samples:   {metrics['n_samples']}")
    print(f"  Accuracy:  {metrics['accuracy']:.4f}")
    print(f"  Precision: {metrics['precision_macro']:.4f} (macro)")
    print(f"  Recall:    {metrics['recall_macro']:.4f} (macro)")
    print(f"  F1:        {metrics['f1_macro']:.4f} (macro)")
    if "confidence_interval" in metrics:
        ci = metrics["confidence_interval"]
        print(f"  Accuracy {ci['confidence_level']*100:.0f}% CI: "
              f"[{ci['lower_bound']:.4f}, {ci['upper_bound']:.4f}]")
