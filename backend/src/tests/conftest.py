from __future__ import annotations

import pytest

from essay_grader.concepts import KeyConceptCache
from essay_grader.engine import EssayScoringEngine
from essay_grader.models import AssessmentRequest, QuestionMetadata
from essay_grader.text import LexicalNormalizer

OOP_QUESTION = "Explain Object-Oriented Programming (OOP) and its four main principles."
OOP_REFERENCE = (
    "Object-Oriented Programming (OOP) is a programming paradigm based on the concept of 'objects' that contain "
    "data and code. The four main principles are: 1) Encapsulation - bundling data and methods that operate on that "
    "data within a single unit, 2) Inheritance - allowing a class to inherit properties and methods from another "
    "class, 3) Polymorphism - allowing objects to be treated as instances of their parent class, and 4) Abstraction "
    "- hiding complex implementation details and showing only necessary features."
)
OOP_PARAPHRASE = (
    "OOP is a style of programming where software is organised around objects that bundle state with behaviour. "
    "There are four main principles. First, encapsulation keeps an object's fields private and only exposes methods, "
    "for example a BankAccount class guards its balance. Second, inheritance lets a subclass extend a parent class so "
    "it can reuse existing code, such as a Dog class that derives from Animal. Third, polymorphism means different "
    "classes can respond to the same method call in their own way. Finally, abstraction hides complicated internals "
    "behind a simple interface."
)
OFF_TOPIC = (
    "HTML is the standard markup language for web pages. Tags such as headings, paragraphs and links describe the "
    "layout of a page. CSS then styles these elements with colours and fonts, while browsers render the final result "
    "for visitors."
)
OOP_LADDER = (
    "I am not sure. Cars drive on roads and trees grow in forests.",
    "OOP is a kind of programming that uses objects.",
    "Object-oriented programming uses objects and classes. It has four principles: encapsulation, inheritance, "
    "polymorphism and abstraction.",
    OOP_PARAPHRASE,
    OOP_REFERENCE,
)


@pytest.fixture
def cache() -> KeyConceptCache:
    return KeyConceptCache(max_entries=64)


@pytest.fixture
def engine(cache: KeyConceptCache) -> EssayScoringEngine:
    return EssayScoringEngine(cache=cache)


@pytest.fixture
def normalizer() -> LexicalNormalizer:
    return LexicalNormalizer()


@pytest.fixture
def oop_question() -> QuestionMetadata:
    return QuestionMetadata(text=OOP_QUESTION, id="oop-principles")


@pytest.fixture
def make_request(oop_question: QuestionMetadata):
    def _make(student: str, reference: str = OOP_REFERENCE, max_marks: float = 10, question=None) -> AssessmentRequest:
        return AssessmentRequest(
            student_answer=student,
            reference_answer=reference,
            max_marks=max_marks,
            question=question or oop_question,
        )

    return _make
