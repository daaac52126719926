"""Comment categorization: a question-word rule backed by a Naive Bayes model."""

from nltk.classify import NaiveBayesClassifier
from nltk.stem import PorterStemmer
from nltk.tokenize import RegexpTokenizer

from pr_activity_dashboard.models import Category
from pr_activity_dashboard.utils import get_logger

logger = get_logger(__name__)

QUESTION_WORDS = frozenset({"why", "how", "what", "when", "where", "who"})

TRAINING_CORPUS: tuple[tuple[str, Category], ...] = (
    ("why did you do this", Category.QUESTION),
    ("how does this work", Category.QUESTION),
    ("what is the purpose", Category.QUESTION),
    ("this is missing", Category.MISSED_FUNCTIONALITY),
    ("not implemented yet", Category.MISSED_FUNCTIONALITY),
    ("functionality is missing", Category.MISSED_FUNCTIONALITY),
    ("would be nice to have", Category.NICE_TO_HAVE),
    ("could add this feature", Category.NICE_TO_HAVE),
    ("might be good to include", Category.NICE_TO_HAVE),
    ("this could be improved", Category.IMPROVEMENT),
    ("should be better", Category.IMPROVEMENT),
    ("needs enhancement", Category.IMPROVEMENT),
)


class CommentClassifier:
    """Assign a Category to free-text comment bodies.

    The model is trained once, at construction, on a fixed corpus, so
    ``categorize`` is deterministic for a given input.
    """

    def __init__(self, corpus: tuple[tuple[str, Category], ...] = TRAINING_CORPUS) -> None:
        """Train the Bayes model.

        Args:
        ----
            corpus: (phrase, category) training pairs

        """
        self.tokenizer = RegexpTokenizer(r"\w+")
        self.stemmer = PorterStemmer()
        self.model = NaiveBayesClassifier.train(
            [(self._features(text), category.value) for text, category in corpus],
        )
        self.vocabulary = {name for text, _ in corpus for name in self._features(text)}
        logger.debug("Trained comment classifier on %d phrases", len(corpus))

    def tokenize(self, text: str) -> list[str]:
        """Split lower-cased text into word tokens."""
        return self.tokenizer.tokenize(text.lower())

    def _features(self, text: str) -> dict[str, bool]:
        return {self.stemmer.stem(token): True for token in self.tokenize(text)}

    def categorize(self, text: object) -> Category:
        """Return the category for a comment body.

        Never raises: empty or non-text input, and anything the model cannot
        place, yields ``Category.OTHER``.

        Args:
        ----
            text: Comment body

        Returns:
        -------
            Category for the comment

        """
        if not text or not isinstance(text, str):
            return Category.OTHER

        tokens = self.tokenize(text)
        if any(token in QUESTION_WORDS for token in tokens):
            return Category.QUESTION

        features = {self.stemmer.stem(token): True for token in tokens}
        if not self.vocabulary.intersection(features):
            # Nothing the model was trained on; it has no basis for a label
            return Category.OTHER

        try:
            label = self.model.classify(features)
        except Exception:
            logger.exception("Classifier failed, defaulting to other")
            return Category.OTHER

        return Category.coerce(label)
