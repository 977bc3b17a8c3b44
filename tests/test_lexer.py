import pytest

from topoforge.core.models import Document, LineKind
from topoforge.editing.lexer import LineClassifier


@pytest.mark.parametrize("line, kind, indent, key", [
    ("", LineKind.BLANK, 0, None),
    ("    ", LineKind.BLANK, 0, None),
    ("  # a comment", LineKind.COMMENT, 2, None),
    ("services:", LineKind.KEY, 0, "services"),
    ("  broker:", LineKind.KEY, 2, "broker"),
    ("    <<: *agent-common", LineKind.KEY, 4, "<<"),
    ("    image: nginx:latest", LineKind.KEY, 4, "image"),
    ("    \"quoted key\": 1", LineKind.KEY, 4, "quoted key"),
    ("      - rest_api", LineKind.SEQUENCE_ITEM, 6, None),
    ("            - driver: nvidia", LineKind.SEQUENCE_ITEM, 12, "driver"),
    ("      --bind-addr 0.0.0.0:8081", LineKind.SCALAR, 6, None),
    ("\tfoo: bar", LineKind.KEY, 2, "foo"),
])
def test_classify_single_lines(line, kind, indent, key):
    shard = LineClassifier().classify(0, line)
    assert shard.kind is kind
    assert shard.indent == indent
    assert shard.key == key
    assert shard.raw_line == line


def test_key_values_are_captured():
    shard = LineClassifier().classify(3, "              device_ids: ['0']")
    assert shard.line_no == 3
    assert shard.value == "['0']"


def test_block_scalar_content_is_opaque():
    """
    Lines inside a literal scalar look like keys but must stay scalars,
    otherwise the locator would cut blocks short.
    """
    doc = Document.from_text(
        "    command: |\n"
        "      broker: not-a-key\n"
        "\n"
        "      still: scalar\n"
        "    volumes:\n"
    )
    kinds = [s.kind for s in LineClassifier().shard(doc)]
    assert kinds == [LineKind.KEY, LineKind.SCALAR, LineKind.BLANK, LineKind.SCALAR, LineKind.KEY]


def test_shard_resets_block_state_between_documents():
    classifier = LineClassifier()
    classifier.shard(Document.from_text("a: |\n"))
    shards = classifier.shard(Document.from_text("  b: 1\n"))
    assert shards[0].kind is LineKind.KEY


def test_fixture_lines_are_all_classified(compose_doc):
    shards = LineClassifier().shard(compose_doc)
    assert len(shards) == len(compose_doc)
    assert [s.line_no for s in shards] == list(range(len(compose_doc)))
