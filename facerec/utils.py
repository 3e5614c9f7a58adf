# facerec/utils.py
import logging
import os

import joblib
import numpy as np
import matplotlib.pyplot as plt
import seaborn as sns
from sklearn.metrics import confusion_matrix

import config


def setup_logging(log_file=config.LOG_FILE, verbose=config.VERBOSE):
    """Log to the console and to the experiment log file."""
    level = logging.INFO if verbose else logging.WARNING
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_file is not None:
        os.makedirs(os.path.dirname(log_file), exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)


def plot_mean_face(db, h, w):
    """Mean training image ("mean face")."""
    plt.figure(figsize=(4, 4))
    plt.imshow(db.mean_face.data.reshape(h, w), cmap='gray')
    plt.title("Mean Face")
    plt.axis('off')
    path = f"{config.OUTPUT_PATH}/mean_face.png"
    plt.savefig(path, dpi=config.PLOT_DPI, bbox_inches='tight')
    plt.close()
    return path


def plot_basis(W_tr, h, w, name="Eigenface", n_top=config.N_EIGENFACES_DISPLAY):
    """Show the first rows of a projection matrix as images."""
    n_top = min(n_top, W_tr.rows)
    n_cols = 4
    n_rows = max(1, int(np.ceil(n_top / n_cols)))
    plt.figure(figsize=(3 * n_cols, 3 * n_rows))
    for i in range(n_top):
        plt.subplot(n_rows, n_cols, i + 1)
        plt.imshow(W_tr.data[i].reshape(h, w), cmap='gray')
        plt.title(f"{name} {i+1}")
        plt.axis('off')
    plt.suptitle(f"First {n_top} basis images ({name})")
    path = f"{config.OUTPUT_PATH}/{name.lower()}s.png"
    plt.savefig(path, dpi=config.PLOT_DPI, bbox_inches='tight')
    plt.close()
    return path


def plot_confusion_matrix(y_true, y_pred, model_name):
    """Confusion matrix heatmap."""
    cm = confusion_matrix(y_true, y_pred)
    plt.figure(figsize=config.PLOT_FIGSIZE_MEDIUM)
    sns.heatmap(cm, annot=cm.shape[0] <= 20, fmt='d', cmap='Blues')
    plt.title(f"Confusion Matrix: {model_name}")
    plt.ylabel('True Class')
    plt.xlabel('Predicted Class')
    path = f"{config.OUTPUT_PATH}/cm_{model_name.lower().replace(' ', '_')}.png"
    plt.savefig(path, dpi=config.PLOT_DPI, bbox_inches='tight')
    plt.close()
    return path


def plot_cross_validation(df_results):
    """Accuracy per fold and algorithm."""
    plt.style.use(config.PLOT_STYLE)
    plt.figure(figsize=config.PLOT_FIGSIZE_MEDIUM)
    sns.barplot(data=df_results, x="fold", y="accuracy", hue="algorithm", palette=config.PLOT_COLORMAP)
    plt.ylim(0, 1.05)
    plt.xlabel("Held-out observation")
    plt.ylabel("Recognition Accuracy")
    plt.title("k-fold Cross-Validation", fontsize=14, fontweight='bold')
    plt.tight_layout()
    path = f"{config.OUTPUT_PATH}/cross_validation.png"
    plt.savefig(path, dpi=config.PLOT_DPI, bbox_inches='tight')
    plt.close()
    return path


def save_model(model, name):
    """Dump a trained object with joblib."""
    path = os.path.join(config.MODELS_PATH, f"{name}.joblib")
    joblib.dump(model, path)
    print(f"Model saved: {path}")
    return path


def load_model(name):
    return joblib.load(os.path.join(config.MODELS_PATH, f"{name}.joblib"))
