import json

from tutor.tools.calculator import CalculatorTools


def _result(output: str):
    return json.loads(output)


def test_registers_all_functions():
    calculator = CalculatorTools()
    assert set(calculator.functions) == {
        "add",
        "subtract",
        "multiply",
        "divide",
        "exponentiate",
        "factorial",
        "is_prime",
        "square_root",
    }
    assert CalculatorTools(enable_all=False).functions == {}


def test_basic_operations():
    calculator = CalculatorTools()
    assert _result(calculator.add(2, 3)) == {"operation": "addition", "result": 5}
    assert _result(calculator.subtract(2, 3))["result"] == -1
    assert _result(calculator.multiply(4, 2.5))["result"] == 10.0
    assert _result(calculator.divide(9, 3))["result"] == 3.0
    assert _result(calculator.exponentiate(2, 10))["result"] == 1024.0
    assert _result(calculator.factorial(5))["result"] == 120
    assert _result(calculator.square_root(16))["result"] == 4.0


def test_is_prime():
    calculator = CalculatorTools()
    assert _result(calculator.is_prime(13))["result"] is True
    assert _result(calculator.is_prime(1001))["result"] is False
    assert _result(calculator.is_prime(1))["result"] is False


def test_errors_are_returned_not_raised():
    calculator = CalculatorTools()
    assert "error" in _result(calculator.divide(1, 0))
    assert "error" in _result(calculator.factorial(-1))
    assert "error" in _result(calculator.square_root(-4))
    assert "error" in _result(calculator.exponentiate(10, 1000))


def test_docstring_types_are_not_part_of_descriptions():
    add = CalculatorTools().functions["add"]
    assert add.parameters["properties"]["a"]["description"] == "First number."
    assert add.parameters["properties"]["a"]["type"] == "number"
