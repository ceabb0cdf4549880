"""
Unit tests for corpus_loader.py
"""

import json
from pathlib import Path

import pytest

from rule_tuner.corpus_loader import Corpus, JobPosting, load_corpus

CORPUS_PATH = Path(__file__).resolve().parent.parent / "corpus" / "job_postings.json"


def _posting(posting_id="p1", **overrides):
    data = {
        "posting_id": posting_id,
        "title": "Data Engineer",
        "industry": "tech",
        "text": "- Build data pipelines",
        "tasks": ["Build data pipelines"],
    }
    data.update(overrides)
    return data


def _write(tmp_path, data) -> Path:
    path = tmp_path / "corpus.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestJobPosting:
    """Tests for JobPosting dataclass"""

    def test_requires_tasks(self):
        with pytest.raises(ValueError, match="no expected tasks"):
            JobPosting(posting_id="p1", title="t", industry="tech", text="x", tasks=[])

    def test_optional_fields_default_empty(self):
        posting = JobPosting(posting_id="p1", title="t", industry="tech", text="x", tasks=["x"])
        assert posting.qualifications == []
        assert posting.benefits == []


class TestLoadCorpus:
    def test_load(self, tmp_path):
        path = _write(tmp_path, {
            "corpus_id": "c1",
            "description": "demo",
            "postings": [_posting("p1"), _posting("p2", industry="finance")],
        })
        corpus = load_corpus(path)
        assert corpus.corpus_id == "c1"
        assert len(corpus) == 2
        assert corpus.industries == ["tech", "finance"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_corpus(tmp_path / "absent.json")

    def test_missing_posting_field(self, tmp_path):
        bad = _posting()
        del bad["industry"]
        path = _write(tmp_path, {"corpus_id": "c1", "postings": [bad]})
        with pytest.raises(KeyError, match="industry"):
            load_corpus(path)

    def test_missing_corpus_field(self, tmp_path):
        path = _write(tmp_path, {"corpus_id": "c1"})
        with pytest.raises(KeyError, match="postings"):
            load_corpus(path)

    def test_empty(self, tmp_path):
        path = _write(tmp_path, {"corpus_id": "c1", "postings": []})
        with pytest.raises(ValueError, match="no postings"):
            load_corpus(path)

    def test_duplicate_ids(self, tmp_path):
        path = _write(tmp_path, {"corpus_id": "c1", "postings": [_posting("p1"), _posting("p1")]})
        with pytest.raises(ValueError, match="duplicate"):
            load_corpus(path)

    def test_numeric_id_is_stringified(self, tmp_path):
        path = _write(tmp_path, {"corpus_id": "c1", "postings": [_posting(7)]})
        assert load_corpus(path).postings[0].posting_id == "7"


class TestBundledCorpus:
    """Tests for the corpus shipped in corpus/"""

    def test_loads(self):
        corpus = load_corpus(CORPUS_PATH)
        assert isinstance(corpus, Corpus)
        assert corpus.corpus_id == "job_postings_v1"
        assert len(corpus) == 21

    def test_covers_every_industry(self):
        corpus = load_corpus(CORPUS_PATH)
        assert set(corpus.industries) == {"tech", "marketing", "finance", "hr", "healthcare"}

    def test_expected_tasks_appear_in_text(self):
        for posting in load_corpus(CORPUS_PATH).postings:
            for task in posting.tasks:
                assert task in posting.text, posting.posting_id
