"""
Offline unit tests for attribute lines and value normalization.
"""

import pytest

from mdtask.errors import DuplicateAttribute, InvalidRunValue
from mdtask.models import RequiredBehaviour, Task
from mdtask.parser import TaskParser, lookup_attribute, normalize_value, split_list


def _attribute_parser() -> TaskParser:
    parser = TaskParser([], "tasks")
    parser.current_task = Task(name="a task")
    return parser


@pytest.mark.parametrize(
    "line,field,expected",
    [
        ("Env: my attribute", "env", "my attribute"),
        ("EnvIronMent: my attribute", "env", "my attribute"),
        ("Env: my:attribute", "env", "my:attribute"),
        ("Env: _*`my:attribute_*`", "env", "my:attribute"),
        ("req: my attribute", "depends_on", "my attribute"),
        ("REQ: my attribute", "depends_on", "my attribute"),
        ("ReqUiRES: my attribute", "depends_on", "my attribute"),
        ("req: my:attribute", "depends_on", "my:attribute"),
        ("req: _*`my:attribute_*`", "depends_on", "my:attribute"),
        ("Inputs: my attribute", "inputs", "my attribute"),
        ("InpUts: my attribute", "inputs", "my attribute"),
        ("Inputs: my:attribute", "inputs", "my:attribute"),
        ("Inputs: _*`my:attribute_*`", "inputs", "my:attribute"),
        ("dir: my attribute", "dir", "my attribute"),
        ("dIrECTORY: my attribute", "dir", "my attribute"),
        ("dir: my:attribute", "dir", "my:attribute"),
        ("dir: _*`my:attribute_*`", "dir", "my:attribute"),
        ("dir:my attribute", "dir", "my attribute"),
        ("**Requires**: my attribute", "depends_on", "my attribute"),
    ],
)
def test_parse_attribute(line, field, expected):
    """Test that recognized keys populate the matching field."""
    parser = _attribute_parser()

    assert parser.parse_attribute(line) is True

    value = getattr(parser.current_task, field)
    if isinstance(value, list):
        assert value == [expected]
    else:
        assert value == expected
    assert parser.current_task.required_behaviour == RequiredBehaviour.DEFAULT


@pytest.mark.parametrize(
    "line",
    [
        "env _*`my:attribute_*`",
        "dir _*`my:attribute_*`",
        "req _*`my:attribute_*`",
        "Lists files",
        "Note: this is prose",
        "r: too short",
        "input: shorter than the accepted prefix",
        "environments: longer than the canonical name",
        ": no key",
    ],
)
def test_parse_attribute_no_match(line):
    """Test that other lines are not attributes and leave the task untouched."""
    parser = _attribute_parser()

    assert parser.parse_attribute(line) is False
    assert parser.current_task == Task(name="a task")


@pytest.mark.parametrize(
    "value,expected",
    [
        ("always", RequiredBehaviour.ALWAYS),
        ("once", RequiredBehaviour.ONCE),
        ("_*`once`*_", RequiredBehaviour.ONCE),
        ("", RequiredBehaviour.DEFAULT),
    ],
)
def test_parse_run(value, expected):
    """Test run policies, with an empty value keeping the default."""
    parser = _attribute_parser()

    assert parser.parse_attribute(f"run: {value}") is True
    assert parser.current_task.required_behaviour == expected


def test_invalid_run():
    """Test that an unrecognized run value fails."""
    parser = _attribute_parser()

    with pytest.raises(InvalidRunValue):
        parser.parse_attribute("run: never")


def test_multiple_dirs():
    """Test that a second directory fails."""
    parser = _attribute_parser()
    parser.current_task.dir = "an existing dir"

    with pytest.raises(DuplicateAttribute, match="directory already set"):
        parser.parse_attribute("dir: some dir")


def test_list_attributes_split_and_accumulate():
    """Test comma splitting for env, inputs and requires."""
    parser = _attribute_parser()

    parser.parse_attribute("Env: `A=1`, `B=2`")
    parser.parse_attribute("env: C=3")
    parser.parse_attribute("Inputs: FOO, BAR")
    parser.parse_attribute("Requires: **build**, test")

    task = parser.current_task
    assert task.env == ["A=1", "B=2", "C=3"]
    assert task.inputs == ["FOO", "BAR"]
    assert task.depends_on == ["build", "test"]


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("  plain  ", "plain"),
        ("_*`my:attribute_*`", "my:attribute"),
        ("``code``", "code"),
        ("```code```", "code"),
        ("**./some_dir**", "./some_dir"),
        ("MY_VAR=1", "MY_VAR=1"),
        ("MY_LONG_VAR_NAME=x", "MY_LONG_VAR_NAME=x"),
        ("* _ `", ""),
        ("FOO=*bar*", "FOO=bar"),
        ("`a` or `b`", "a or b"),
        ("**build** and *test*", "build and test"),
        ("path is _./out_ now", "path is ./out now"),
        ("`x`**y**", "xy"),
    ],
)
def test_normalize_value(raw, expected):
    """Test markup stripping on attribute values."""
    assert normalize_value(raw) == expected


def test_split_list_drops_empty_pieces():
    """Test that empty list items are dropped."""
    assert split_list(" a ,, `b` , ,") == ["a", "b"]
    assert split_list("") == []


def test_split_list_markup_inside_items():
    """Test that emphasis inside each item is removed evenly."""
    assert split_list("**build**, *test*, `lint`") == ["build", "test", "lint"]
    assert split_list("`A=*1*`, B=`2`") == ["A=1", "B=2"]


def test_env_value_with_inner_emphasis():
    """Test an attribute line whose value has markup in the middle."""
    parser = _attribute_parser()

    assert parser.parse_attribute("Env: FOO=*bar*, `BAZ`=1") is True
    assert parser.current_task.env == ["FOO=bar", "BAZ=1"]


def test_lookup_attribute_canonical_names():
    """Test that every canonical name maps to its field."""
    assert lookup_attribute("environment").field == "env"
    assert lookup_attribute("requires").field == "depends_on"
    assert lookup_attribute("inputs").field == "inputs"
    assert lookup_attribute("directory").field == "dir"
    assert lookup_attribute("run").field == "required_behaviour"
    assert lookup_attribute("description") is None
