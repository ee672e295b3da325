import pytest

from solc_compiler.errors import CompilationError, ProtocolError
from solc_compiler.invoker import RawOutput
from solc_compiler.result import CompilationResult, Contract, SourceLocation, is_selected, parse_output

ALL = {"*": {"*": ["abi", "evm.bytecode.object", "evm.deployedBytecode.object"]}}

STORAGE_OUTPUT = {
    "contracts": {
        "SimpleStorage.sol": {
            "SimpleStorage": {
                "abi": [{"type": "function", "name": "get", "inputs": [], "outputs": []}],
                "evm": {
                    "bytecode": {"object": "6080604052"},
                    "deployedBytecode": {"object": "60806040"},
                },
            },
        },
    },
    "sources": {"SimpleStorage.sol": {"id": 0}},
}


def test_empty_contracts():
    result = parse_output({"contracts": {}}, ALL)
    assert len(result) == 0
    assert result.warnings == []


def test_decodes_contracts():
    result = parse_output(RawOutput(STORAGE_OUTPUT, 0), ALL)
    contract = result["SimpleStorage.sol"]["SimpleStorage"]
    assert contract.abi[0]["name"] == "get"
    assert contract.bytecode == "6080604052"
    assert contract.deployed_bytecode == "60806040"
    assert contract.creation_size == 5
    assert contract.runtime_size == 4
    assert not contract.exceeds_size_limit
    assert result.find("SimpleStorage") is contract
    assert result.find("Missing") is None
    assert result.contract_names() == ["SimpleStorage"]


def test_absent_optional_fields_are_tolerated():
    output = {"contracts": {"A.sol": {"A": {"abi": []}, "B": {"evm": {"bytecode": {"object": "00"}}}}}}
    result = parse_output(output, ALL)
    assert result["A.sol"]["A"] == Contract(abi=[])
    assert result["A.sol"]["B"].deployed_bytecode is None
    assert result["A.sol"]["B"].bytecode == "00"


def test_error_diagnostic_fails():
    with pytest.raises(CompilationError) as excinfo:
        parse_output({"errors": [{"severity": "error", "message": "x"}]}, ALL)
    assert excinfo.value.messages == ["x"]
    assert excinfo.value.diagnostics[0].is_error
    assert excinfo.value.phase == "compile"


def test_error_wins_over_contracts():
    output = dict(STORAGE_OUTPUT, errors=[
        {"severity": "warning", "message": "w"},
        {"severity": "error", "message": "e", "type": "TypeError",
         "sourceLocation": {"file": "SimpleStorage.sol", "start": 3, "end": 9}},
    ])
    with pytest.raises(CompilationError) as excinfo:
        parse_output(output, ALL)
    error = excinfo.value.diagnostics[1]
    assert error.type == "TypeError"
    assert error.location == SourceLocation("SimpleStorage.sol", 3, 9)
    assert "e" in str(excinfo.value)


def test_warnings_are_attached():
    output = dict(STORAGE_OUTPUT, errors=[{"severity": "warning", "message": "unused variable"},
                                          {"severity": "info", "message": "note"}])
    result = parse_output(output, ALL)
    assert [w.message for w in result.warnings] == ["unused variable", "note"]
    assert "SimpleStorage.sol" in result


@pytest.mark.parametrize("output", [
    {},
    [],
    {"unexpected": True},
    {"errors": "boom"},
    {"contracts": []},
    {"contracts": {"A.sol": []}},
    {"contracts": {"A.sol": {"A": "not an object"}}},
    {"contracts": {"A.sol": {"A": {"evm": {"bytecode": "6080"}}}}},
    {"errors": [{"message": "no severity"}]},
])
def test_malformed_output_is_protocol_error(output):
    with pytest.raises(ProtocolError) as excinfo:
        parse_output(output, ALL)
    assert excinfo.value.phase == "parse"


def test_unrequested_contract_is_rejected():
    selection = {"Other.sol": {"*": ["abi"]}}
    with pytest.raises(ProtocolError, match="unrequested"):
        parse_output(STORAGE_OUTPUT, selection)


def test_selection_keys():
    selection = {"*": {"Token": ["abi"]}, "lib/Math.sol": {"*": ["abi"]}, "A.sol": {"": ["ast"]}}
    assert is_selected(selection, "x.sol", "Token")
    assert not is_selected(selection, "x.sol", "Other")
    assert is_selected(selection, "lib/Math.sol", "Math")
    assert not is_selected(selection, "A.sol", "A")


def test_only_bare_star_is_a_wildcard():
    selection = {"lib/*.sol": {"*": ["abi"]}, "*": {"Tok?n": ["abi"]}}
    assert not is_selected(selection, "lib/Math.sol", "Math")
    assert not is_selected(selection, "x.sol", "Token")
    assert is_selected(selection, "lib/*.sol", "Math")


def test_bracketed_source_name_selected_by_name():
    output = {"contracts": {"Token[v2].sol": {"Token": {"abi": []}}}}
    result = parse_output(output, {"Token[v2].sol": {"*": ["abi"]}})
    assert result.find("Token").abi == []
    with pytest.raises(ProtocolError, match="unrequested"):
        parse_output(output, {"Tokenv.sol": {"*": ["abi"]}})


def test_size_limit():
    contract = Contract(deployed_bytecode="00" * 24577)
    assert contract.exceeds_size_limit
    assert Contract(deployed_bytecode="0x" + "00" * 24576).runtime_size == 24576


def test_results_compare_by_value():
    assert parse_output(STORAGE_OUTPUT, ALL) == parse_output(STORAGE_OUTPUT, ALL)
    assert CompilationResult() == parse_output({"contracts": {}})
