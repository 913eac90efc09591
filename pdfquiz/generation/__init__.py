from pdfquiz.generation.base import BaseQuestionGenerator
from pdfquiz.generation.extractive_generator import ExtractiveQuestionGenerator
from pdfquiz.generation.factory import QuestionGeneratorFactory
from pdfquiz.generation.generator import QuestionGenerator

__all__ = [
    "BaseQuestionGenerator",
    "ExtractiveQuestionGenerator",
    "QuestionGenerator",
    "QuestionGeneratorFactory",
]
