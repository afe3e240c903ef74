"""
Shared fixtures and step definitions for BDD tests.

- runner, context: available to all scenario files in this directory
- backend: autouse, points get_datastore at whichever fake store context['store'] holds
- no_logging: autouse, prevents log file creation during tests
- shared steps: role and failure setup, output checks
"""

import pytest
from unittest.mock import patch
from click.testing import CliRunner
from pytest_bdd import given, then, parsers

# Plain-language failure names used in feature files -> DataStore operations
FAILURES = {
    'load': 'select',
    'save': 'insert',
    'update': 'update',
    'delete': 'delete',
    'upload': 'upload_object',
    'check roles': 'get_current_user_role',
}


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def context(store):
    """Mutable dict shared between Given/When/Then steps within a scenario."""
    return {'store': store}


@pytest.fixture(autouse=True)
def backend(context):
    with patch("devduo.cli.main.get_datastore", side_effect=lambda: context["store"]):
        yield


@pytest.fixture(autouse=True)
def no_logging():
    with patch("devduo.cli.main.configure_logging"):
        yield


@given(parsers.parse('the signed-in user has the role "{role}"'))
def user_has_role(context, role):
    context["store"].role = role


@given(parsers.parse("the data store fails to {action}"))
def data_store_fails(context, action):
    context["store"].fail.add(FAILURES[action])


@then(parsers.parse('the output contains "{text}"'))
def output_contains(context, text):
    assert text in context["result"].output, (
        f"Expected {text!r} in output:\n{context['result'].output}"
    )


@then(parsers.parse('"{first}" is listed before "{second}"'))
def listed_before(context, first, second):
    output = context["result"].output
    assert output.index(first) < output.index(second), output
