"""Tests for chunk extraction and the chunk cache."""

from conftest import heading, para

from docgraph_cli.chunker import ChunkCache, extract_chunks


def _document():
    return (
        para("Intro, not a chunk."),
        heading("new"),
        para("a"),
        heading("Examples", level=3),
        para("b"),
        heading("bless"),
        para("c"),
        heading("See also", level=1),
        para("d"),
        heading("method foo"),
        para("e"),
    )


def test_extract_chunks_boundaries():
    """Chunks open at level 2 and close at the next level <= 2 heading."""
    content = _document()
    chunks = extract_chunks("Mu", content)

    assert [c.name for c in chunks] == ["new", "bless", "method foo"]

    new = chunks[0]
    assert new.owner == "Mu"
    assert new.heading is content[1]
    assert new.body == content[2:5]
    assert (new.start, new.end) == (1, 5)

    bless = chunks[1]
    assert bless.body == (content[6],)
    assert (bless.start, bless.end) == (5, 7)

    # the level-1 heading and its paragraph belong to no chunk
    assert chunks[2].start == 9
    assert chunks[2].end == len(content)


def test_same_level_headings_start_separate_chunks():
    content = (heading("a"), heading("b"), heading("c"), para("x"))
    chunks = extract_chunks("T", content)

    assert [c.name for c in chunks] == ["a", "b", "c"]
    assert chunks[0].body == ()
    assert chunks[2].body == (content[3],)


def test_content_without_entries():
    content = (heading("Title", level=1), para("only prose"))
    assert extract_chunks("T", content) == []


def test_extraction_is_idempotent():
    content = _document()
    assert extract_chunks("Mu", content) == extract_chunks("Mu", content)


def test_whitespace_names_are_extracted_but_not_indexable():
    chunks = extract_chunks("Mu", _document())

    assert chunks[0].indexable
    assert not chunks[2].indexable


def test_custom_entry_level():
    content = (heading("Group"), heading("inner", level=3), para("x"), heading("other", level=3))
    chunks = extract_chunks("T", content, entry_level=3)

    assert [c.name for c in chunks] == ["inner", "other"]


def test_chunk_nodes_start_with_heading():
    chunk = extract_chunks("Mu", _document())[1]
    assert chunk.nodes == (chunk.heading, *chunk.body)


class TestChunkCache:
    """Tests for ChunkCache."""

    def test_extracts_once(self):
        cache = ChunkCache()
        cache.add_document("Mu", _document())

        first = cache.all_chunks("Mu")
        assert cache.all_chunks("Mu") is first
        assert cache.indexable("Mu") is cache.indexable("Mu")

    def test_indexable_excludes_whitespace_names(self):
        cache = ChunkCache()
        cache.add_document("Mu", _document())

        assert [c.name for c in cache.indexable("Mu")] == ["new", "bless"]

    def test_indexable_keeps_first_duplicate(self):
        cache = ChunkCache()
        content = (heading("new"), para("first"), heading("new"), para("second"))
        cache.add_document("T", content)

        kept = cache.indexable("T")
        assert len(kept) == 1
        assert kept[0].body == (content[1],)
        assert len(cache.all_chunks("T")) == 2

    def test_owner_without_document(self):
        cache = ChunkCache()

        assert not cache.has_document("Ghost")
        assert cache.document("Ghost") == ()
        assert cache.all_chunks("Ghost") == ()
        assert cache.indexable("Ghost") == ()

    def test_owners_in_insertion_order(self):
        cache = ChunkCache()
        cache.add_document("B", ())
        cache.add_document("A", ())
        assert cache.owners() == ["B", "A"]
