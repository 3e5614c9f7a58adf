"""
Face database: trained subspace bases plus the labeled training projections.

A Database is built empty, populated by train() or load(), and then used by
recognize() to find the training image nearest to a query in PCA, LDA or
ICA space.
"""

import logging
from collections import namedtuple

import numpy as np

from facerec import persistence
from facerec.distance import dist_l2, get_distance
from facerec.exceptions import EmptyInput, NoMatch, PersistenceError, PreconditionViolation, ShapeMismatch
from facerec.ica import ICA2
from facerec.lda import LDA
from facerec.matrix import Matrix, matrix_multiply
from facerec.pca import EigenfacePCA

logger = logging.getLogger(__name__)

DatabaseEntry = namedtuple('DatabaseEntry', ['label', 'name'])

RecognitionResult = namedtuple('RecognitionResult', ['expected', 'predicted', 'distance'])

ALGORITHMS = ('pca', 'lda', 'ica')


class Database:
    """
    Attributes:
        num_classes: number of distinct labels in the training set
        num_images: number of training images
        num_dimensions: pixels per image
        entries: DatabaseEntry per training column, grouped by class
        mean_face: mean training image, (pixels, 1)
        W_pca_tr, P_pca: PCA projection matrix and projected training images
        W_lda_tr, P_lda: same for LDA, None unless trained with lda=True
        W_ica_tr, P_ica: same for ICA, None unless trained with ica=True
    """

    def __init__(self, provider=None):
        self.provider = provider
        self.num_classes = 0
        self.num_images = 0
        self.num_dimensions = 0
        self.entries = []
        self.mean_face = None

        self.W_pca_tr = None
        self.P_pca = None

        self.W_lda_tr = None
        self.P_lda = None

        self.W_ica_tr = None
        self.P_ica = None

    @property
    def lda(self):
        return self.W_lda_tr is not None

    @property
    def ica(self):
        return self.W_ica_tr is not None

    @property
    def algorithms(self):
        """Algorithms available for recognition, in training order."""
        return [a for a in ALGORITHMS if self._basis(a)[0] is not None]

    def __repr__(self):
        return (f"Database(classes={self.num_classes}, images={self.num_images}, "
                f"dimensions={self.num_dimensions}, algorithms={self.algorithms})")

    def _basis(self, algorithm):
        if algorithm == 'pca':
            return self.W_pca_tr, self.P_pca
        if algorithm == 'lda':
            return self.W_lda_tr, self.P_lda
        if algorithm == 'ica':
            return self.W_ica_tr, self.P_ica
        raise ValueError(f"Unknown algorithm: {algorithm!r} (available: {ALGORITHMS})")

    def _center(self, X):
        return X.copy().subtract_columns(self.mean_face)

    def train(self, corpus, lda=False, ica=False, n_components=None):
        """
        Train the database on a corpus grouped by class.

        Args:
            corpus: Corpus of flattened images
            lda: also compute the LDA basis
            ica: also compute the ICA (architecture II) basis
            n_components: PCA components kept, number of images - 1 if None

        Returns:
            Database: self

        Raises:
            EmptyInput: if the corpus has no images
            PreconditionViolation: if the corpus is not grouped by class
        """
        if len(corpus) == 0 or corpus.num_dimensions == 0:
            raise EmptyInput("Cannot train on an empty corpus")
        if not corpus.is_grouped_by_class():
            raise PreconditionViolation("Corpus columns must be grouped by class")

        self.num_images = len(corpus)
        self.num_dimensions = corpus.num_dimensions
        self.num_classes = corpus.num_classes
        self.entries = [DatabaseEntry(label, name)
                        for label, name in zip(corpus.labels, corpus.names)]

        logger.info("Training on %d images of %d classes (%d dimensions)",
                    self.num_images, self.num_classes, self.num_dimensions)

        pca = EigenfacePCA(n_components=n_components, provider=self.provider).fit(corpus.X)
        self.mean_face = pca.mean_
        self.W_pca_tr = pca.components_
        self.P_pca = pca.transform(corpus.X)
        logger.info("PCA basis: %dx%d", self.W_pca_tr.rows, self.W_pca_tr.cols)

        A = self._center(corpus.X)

        self.W_lda_tr = self.P_lda = None
        if lda:
            self.W_lda_tr = LDA(self.W_pca_tr, self.P_pca, self.num_classes, self.entries,
                                provider=self.provider)
            self.P_lda = matrix_multiply(self.W_lda_tr, A, provider=self.provider)
            logger.info("LDA basis: %dx%d", self.W_lda_tr.rows, self.W_lda_tr.cols)

        self.W_ica_tr = self.P_ica = None
        if ica:
            self.W_ica_tr = ICA2(self.W_pca_tr, self.P_pca, provider=self.provider)
            self.P_ica = matrix_multiply(self.W_ica_tr, A, provider=self.provider)
            logger.info("ICA basis: %dx%d", self.W_ica_tr.rows, self.W_ica_tr.cols)

        return self

    def project(self, query, algorithm='pca'):
        """Mean-center a (pixels, 1) query and project it on a trained basis."""
        W, _ = self._basis(algorithm)
        if W is None:
            raise PreconditionViolation(f"Database has no {algorithm.upper()} basis; train it first")
        if not isinstance(query, Matrix):
            query = Matrix.from_array(np.ravel(query))
        if query.shape != (self.num_dimensions, 1):
            raise ShapeMismatch(
                f"Query of shape {query.shape} does not match {self.num_dimensions} dimensions")
        return matrix_multiply(W, self._center(query), provider=self.provider)

    def recognize(self, query, algorithm='pca', distance=dist_l2):
        """
        Find the training image nearest to `query`.

        Ties are broken in favour of the first entry in stored order.

        Args:
            query: (pixels, 1) Matrix or array-like image
            algorithm: 'pca', 'lda' or 'ica'
            distance: dist(A, i, B, j) function or its name ('l1', 'l2', 'cos')

        Returns:
            tuple: (DatabaseEntry, distance)

        Raises:
            NoMatch: if there are no stored training projections
        """
        if isinstance(distance, str):
            distance = get_distance(distance)
        _, P = self._basis(algorithm)
        if P is not None and P.cols == 0:
            raise NoMatch("The database holds no training images")
        q = self.project(query, algorithm)

        best_index = 0
        best_dist = distance(q, 0, P, 0)
        for j in range(1, P.cols):
            d = distance(q, 0, P, j)
            if d < best_dist:
                best_index = j
                best_dist = d

        return self.entries[best_index], best_dist

    def recognize_corpus(self, corpus, algorithm='pca', distance=dist_l2):
        """Recognize every image of a corpus; returns a RecognitionResult per image."""
        results = []
        for k in range(len(corpus)):
            entry, dist = self.recognize(corpus.sample(k), algorithm, distance)
            expected = DatabaseEntry(corpus.labels[k], corpus.names[k])
            results.append(RecognitionResult(expected, entry, dist))
        return results

    def save(self, path_tset, path_tdata):
        if self.W_pca_tr is None:
            raise PreconditionViolation("Cannot save an untrained database")
        with open(path_tset, 'w') as f:
            persistence.write_training_set(f, self.num_classes, self.num_images,
                                           self.num_dimensions, self.entries)
        with open(path_tdata, 'wb') as f:
            persistence.write_training_data(f, self.mean_face, self.W_pca_tr, self.P_pca,
                                            self.W_lda_tr, self.P_lda,
                                            self.W_ica_tr, self.P_ica)
        logger.info("Database saved to %s and %s", path_tset, path_tdata)

    def _check_loaded(self):
        """Raise PersistenceError unless the tset and tdata files describe the same training run."""
        if len(self.entries) != self.num_images:
            raise PersistenceError(f"{len(self.entries)} entries for {self.num_images} images")
        if self.mean_face.shape != (self.num_dimensions, 1):
            raise PersistenceError(f"mean face is {self.mean_face.shape}, expected "
                                   f"({self.num_dimensions}, 1)")
        for algorithm in self.algorithms:
            W, P = self._basis(algorithm)
            if W.cols != self.num_dimensions:
                raise PersistenceError(f"{algorithm} projection has {W.cols} columns, "
                                       f"expected {self.num_dimensions}")
            if P.cols != self.num_images or P.rows != W.rows:
                raise PersistenceError(f"{algorithm} projected images are {P.shape}, "
                                       f"expected ({W.rows}, {self.num_images})")

    @classmethod
    def load(cls, path_tset, path_tdata, provider=None):
        db = cls(provider=provider)
        with open(path_tset) as f:
            num_classes, num_images, num_dimensions, entries = persistence.read_training_set(f)
        with open(path_tdata, 'rb') as f:
            data = persistence.read_training_data(f)

        db.num_classes = num_classes
        db.num_images = num_images
        db.num_dimensions = num_dimensions
        db.entries = [DatabaseEntry(label, name) for label, name in entries]
        for key, value in data.items():
            setattr(db, key, value)
        db._check_loaded()

        logger.info("Database loaded from %s and %s: %r", path_tset, path_tdata, db)
        return db
