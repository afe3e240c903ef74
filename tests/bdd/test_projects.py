from pytest_bdd import scenarios, given, when, then, parsers
from devduo.cli.main import cli

scenarios("features/projects.feature")

_OLD_SCREENSHOT = "https://cdn.example.test/project-images/projects/old.png"


@given("two projects exist")
def projects_exist(context):
    assert len(context["store"].rows("projects")) == 2


@given("the project list is empty")
def no_projects(context, empty_store):
    context["store"] = empty_store


@given(parsers.parse('a screenshot file "{filename}"'))
def screenshot_file(context, tmp_path, filename):
    path = tmp_path / filename
    path.write_bytes(b"\x89PNG\r\n\x1a\nfake")
    context["screenshot"] = str(path)


@when("the admin lists projects")
def list_projects(runner, context):
    context["result"] = runner.invoke(cli, ["projects", "list"])


@when(parsers.parse('the admin adds project "{title}" described as "{description}" with the screenshot'))
def add_project_with_screenshot(runner, context, title, description):
    context["result"] = runner.invoke(cli, [
        "projects", "add", "--title", title, "--description", description,
        "--image", context["screenshot"],
    ])


@when(parsers.parse('the admin adds project "{title}" without a description'))
def add_project_without_description(runner, context, title):
    context["result"] = runner.invoke(cli, ["projects", "add", "--title", title, "--description", "  "])


@when(parsers.parse('the admin renames project {project_id} to "{title}"'))
def rename_project(runner, context, project_id, title):
    context["result"] = runner.invoke(cli, ["projects", "edit", project_id, "--title", title])


@when(parsers.parse('the admin deletes project {project_id} and answers "{answer}"'))
def delete_project(runner, context, project_id, answer):
    context["result"] = runner.invoke(cli, ["projects", "delete", project_id], input=f"{answer}\n")


@then(parsers.parse('the screenshot was uploaded under "{folder}" before the project was saved'))
def uploaded_then_saved(context, folder):
    store = context["store"]
    assert store.operations() == ["upload_object", "insert"]
    path = store.calls[0][2]
    assert path.startswith(folder)
    assert path.endswith(".png")
    assert store.calls[1][2]["image_url"].endswith(path)


@then("no project was saved")
def no_project_saved(context):
    assert "insert" not in context["store"].operations()
    assert context["store"].rows("projects") == []


@then(parsers.parse("project {project_id} keeps its screenshot"))
def keeps_screenshot(context, project_id):
    assert context["store"]._find("projects", project_id)["image_url"] == _OLD_SCREENSHOT


@then(parsers.parse("project {project_id} still exists"))
def project_exists(context, project_id):
    assert context["store"]._find("projects", project_id) is not None
    assert "delete" not in context["store"].operations()
