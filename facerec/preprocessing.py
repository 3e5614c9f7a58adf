"""
This module builds the labeled sample matrix used for training and
recognition.

It provides functionality for:
- Loading a directory of face images, one subdirectory per person
  (the ORL layout: orl_faces/s1/1.pgm ...)
- Loading the Labeled Faces in the Wild (LFW) dataset from scikit-learn
- Wrapping in-memory arrays
- Holding out one observation per class for cross-validation

Samples are stored as the columns of a Matrix and are always grouped by
class, which the LDA scatter computation requires.
"""

import os
import re

import numpy as np
from PIL import Image
from sklearn.datasets import fetch_lfw_people

import config
from facerec.exceptions import ShapeMismatch
from facerec.matrix import Matrix


class Corpus:
    """
    Labeled flattened images, one per column.

    Attributes:
        X: Matrix of shape (pixels, n_images)
        labels: integer class label per column
        names: display name per column
        image_shape: (height, width) of the original images, if known
    """

    def __init__(self, X, labels, names, image_shape=None):
        labels = [int(label) for label in labels]
        names = [str(name) for name in names]
        if not (X.cols == len(labels) == len(names)):
            raise ShapeMismatch(
                f"{X.cols} samples, {len(labels)} labels and {len(names)} names")
        self.X = X
        self.labels = labels
        self.names = names
        self.image_shape = image_shape

    def __len__(self):
        return len(self.labels)

    @property
    def num_dimensions(self):
        return self.X.rows

    @property
    def classes(self):
        """Distinct labels in column order."""
        return list(dict.fromkeys(self.labels))

    @property
    def num_classes(self):
        return len(self.classes)

    def class_map(self):
        """{person: label} from names of the form "<person>/<file>"."""
        return {name.split("/", 1)[0]: label for name, label in zip(self.names, self.labels)}

    def is_grouped_by_class(self):
        seen = set()
        previous = object()
        for label in self.labels:
            if label != previous:
                if label in seen:
                    return False
                seen.add(label)
                previous = label
        return True

    def sort_by_class(self):
        """New corpus with columns stably sorted by label."""
        order = sorted(range(len(self)), key=lambda k: self.labels[k])
        return self.subset(order)

    def subset(self, indices):
        indices = list(indices)
        X = Matrix.from_array(self.X.data[:, np.asarray(indices, dtype=int)])
        return Corpus(X,
                      [self.labels[k] for k in indices],
                      [self.names[k] for k in indices],
                      self.image_shape)

    def sample(self, k):
        """Column k as a (pixels, 1) matrix."""
        return self.X.column(k)

    def info(self):
        return {
            "n_samples": len(self),
            "n_features": self.num_dimensions,
            "n_classes": self.num_classes,
            "image_shape": self.image_shape,
        }


def from_arrays(samples, labels, names=None, image_shape=None):
    """
    Build a corpus from a sequence of images or flattened vectors.

    Raises:
        ShapeMismatch: if the samples do not all have the same size
    """
    vectors = [np.asarray(s, dtype=np.float64).ravel() for s in samples]
    if names is None:
        names = [f"{label}_{k}" for k, label in enumerate(labels)]
    if not vectors:
        return Corpus(Matrix(0, 0), [], [], image_shape)

    sizes = {v.size for v in vectors}
    if len(sizes) != 1:
        raise ShapeMismatch(f"Samples have inconsistent dimensions: {sorted(sizes)}")
    if image_shape is None:
        first = np.asarray(samples[0])
        if first.ndim == 2:
            image_shape = first.shape

    X = Matrix.from_array(np.column_stack(vectors))
    return Corpus(X, labels, names, image_shape)


def to_grayscale(pixels, weights=config.GRAYSCALE_WEIGHTS):
    """Convert an (h, w) or (h, w, channels) pixel array to float grayscale."""
    pixels = np.asarray(pixels, dtype=np.float64)
    if pixels.ndim == 2:
        return pixels
    if pixels.ndim == 3 and pixels.shape[2] >= 3:
        return pixels[:, :, :3] @ np.asarray(weights, dtype=np.float64)
    if pixels.ndim == 3 and pixels.shape[2] in (1, 2):
        return pixels[:, :, 0]
    raise ShapeMismatch(f"Unsupported image array of shape {pixels.shape}")


def read_image(path):
    with Image.open(path) as image:
        return to_grayscale(np.asarray(image))


def _natural_key(name):
    return [int(tok) if tok.isdigit() else tok for tok in re.split(r'(\d+)', name)]


def load_image_directory(path, class_map=None, extensions=config.IMAGE_EXTENSIONS,
                         verbose=config.VERBOSE):
    """
    Load face images from `path/<person>/<image>`.

    Each subdirectory is one class; classes are labeled 0, 1, ... in natural
    sort order of the directory names (s2 before s10) and images are read in
    natural order of their file names.

    Args:
        path: root directory of the image set
        class_map: optional {directory name: label} to reuse the labels of
                   another corpus (e.g. a test set loaded after the training
                   set); unknown directories get fresh labels

    Returns:
        Corpus: grouped by class, names are "<person>/<file>"
    """
    if verbose:
        print(f"Loading images from {path}...")

    class_dirs = sorted(
        (d for d in os.listdir(path) if os.path.isdir(os.path.join(path, d))),
        key=_natural_key
    )

    class_map = dict(class_map or {})
    next_label = max(class_map.values(), default=-1) + 1
    for class_dir in class_dirs:
        if class_dir not in class_map:
            class_map[class_dir] = next_label
            next_label += 1

    samples, labels, names = [], [], []
    for class_dir in sorted(class_dirs, key=lambda d: class_map[d]):
        label = class_map[class_dir]
        class_path = os.path.join(path, class_dir)
        files = sorted(
            (f for f in os.listdir(class_path) if f.lower().endswith(tuple(extensions))),
            key=_natural_key
        )
        for filename in files:
            samples.append(read_image(os.path.join(class_path, filename)))
            labels.append(label)
            names.append(f"{class_dir}/{filename}")

    shapes = {s.shape for s in samples}
    if len(shapes) > 1:
        raise ShapeMismatch(f"Images in {path} have different sizes: {sorted(shapes)}")

    corpus = from_arrays(samples, labels, names)

    if verbose:
        print(f"Dataset loaded: {len(corpus)} samples, {corpus.num_classes} classes")
        if corpus.image_shape is not None:
            h, w = corpus.image_shape
            print(f"Image shape: {h}x{w} = {corpus.num_dimensions} features")

    return corpus


def load_lfw_corpus(min_faces=config.MIN_FACES_PER_PERSON, resize=config.RESIZE_FACTOR,
                    verbose=config.VERBOSE):
    """
    Load the LFW face dataset, grouped by person.

    Args:
        min_faces: Minimum number of images required per person
        resize: Scaling factor for image dimensions

    Returns:
        Corpus: one column per image, names are "<person>/<index>"
    """
    if verbose:
        print(f"Loading LFW dataset (min_faces={min_faces}, resize={resize})...")

    lfw_people = fetch_lfw_people(
        min_faces_per_person=min_faces,
        resize=resize,
        color=False,  # Grayscale images
        data_home=config.DATA_PATH
    )

    n_samples, h, w = lfw_people.images.shape
    names = [f"{lfw_people.target_names[t]}/{k}" for k, t in enumerate(lfw_people.target)]
    corpus = Corpus(Matrix.from_array(lfw_people.data.T), lfw_people.target, names, (h, w))

    if verbose:
        print(f"Dataset loaded: {n_samples} samples, {len(lfw_people.target_names)} classes")
        print(f"Image shape: {h}x{w} = {h * w} features")

    return corpus.sort_by_class()


def split_observation(corpus, index):
    """
    Hold out the index-th image (1-based) of every class.

    Classes with fewer than `index` images contribute nothing to the test set.

    Returns:
        tuple: (train, test) corpora, both grouped by class
    """
    train_idx, test_idx = [], []
    position = {}
    for k, label in enumerate(corpus.labels):
        position[label] = position.get(label, 0) + 1
        if position[label] == index:
            test_idx.append(k)
        else:
            train_idx.append(k)
    return corpus.subset(train_idx), corpus.subset(test_idx)
