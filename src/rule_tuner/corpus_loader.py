"""
Corpus Loader

Loads the labelled job-posting corpus used by the reference evaluator from JSON files.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class JobPosting:
    """Labelled job posting"""
    posting_id: str
    title: str
    industry: str  # expected industry label
    text: str
    tasks: list[str]  # expected task lines
    qualifications: list[str] = field(default_factory=list)
    benefits: list[str] = field(default_factory=list)

    def __post_init__(self):
        """Post-initialization validation"""
        if not self.tasks:
            raise ValueError(f"Posting {self.posting_id} has no expected tasks")


@dataclass
class Corpus:
    """Labelled corpus definition"""
    corpus_id: str
    description: str
    postings: list[JobPosting]

    def __len__(self) -> int:
        return len(self.postings)

    @property
    def industries(self) -> list[str]:
        seen: list[str] = []
        for posting in self.postings:
            if posting.industry not in seen:
                seen.append(posting.industry)
        return seen


def _parse_posting(data: dict) -> JobPosting:
    """
    Create a JobPosting object from dictionary data

    Args:
        data: Posting data dictionary

    Returns:
        JobPosting: Posting object

    Raises:
        KeyError: If a required field is missing
    """
    required_fields = ["posting_id", "title", "industry", "text", "tasks"]
    for field_name in required_fields:
        if field_name not in data:
            raise KeyError(f"Required field '{field_name}' is missing in posting {data.get('posting_id', '?')}")

    return JobPosting(
        posting_id=str(data["posting_id"]),
        title=data["title"],
        industry=data["industry"],
        text=data["text"],
        tasks=list(data["tasks"]),
        # Optional fields (using get() with defaults for backward compatibility)
        qualifications=list(data.get("qualifications", [])),
        benefits=list(data.get("benefits", [])),
    )


def load_corpus(file_path: str | Path) -> Corpus:
    """
    Load a labelled corpus JSON

    Args:
        file_path: Path to the corpus JSON file

    Returns:
        Corpus: Corpus object

    Raises:
        FileNotFoundError: If the file does not exist
        KeyError: If a required field is missing
        ValueError: If the corpus holds no postings or duplicate posting IDs
    """
    with open(file_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    for field_name in ["corpus_id", "postings"]:
        if field_name not in data:
            raise KeyError(f"Required field '{field_name}' is missing: {file_path}")

    postings = [_parse_posting(p) for p in data["postings"]]
    if not postings:
        raise ValueError(f"Corpus has no postings: {file_path}")

    ids = [p.posting_id for p in postings]
    if len(ids) != len(set(ids)):
        raise ValueError(f"Corpus has duplicate posting IDs: {file_path}")

    return Corpus(
        corpus_id=data["corpus_id"],
        description=data.get("description", ""),
        postings=postings,
    )
