from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class TextQualityMetrics:
    """Readability and density figures for a cleaned text."""

    word_count: int
    sentence_count: int
    average_words_per_sentence: float
    readability_score: float
    text_density: float
    has_images: bool = False

    def to_dict(self) -> dict[str, object]:
        return asdict(self)
