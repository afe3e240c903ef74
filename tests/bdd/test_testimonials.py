from pytest_bdd import scenarios, given, when, then, parsers
from devduo.cli.main import cli

scenarios("features/testimonials.feature")


@given("a testimonial exists")
def testimonial_exists(context):
    assert len(context["store"].rows("client_feedbacks")) == 1


@given("there are no testimonials")
def no_testimonials(context, empty_store):
    context["store"] = empty_store


@when(parsers.parse('the admin adds a testimonial from "{name}" saying "{feedback}"'))
def add_testimonial(runner, context, name, feedback):
    context["result"] = runner.invoke(cli, ["testimonials", "add", "--client-name", name, "--feedback", feedback])


@when(parsers.parse('the admin adds a testimonial from "{name}" saying "{feedback}" rated {rating:d}'))
def add_rated_testimonial(runner, context, name, feedback, rating):
    context["result"] = runner.invoke(cli, [
        "testimonials", "add", "--client-name", name, "--feedback", feedback, "--rating", str(rating),
    ])


@when("the admin lists testimonials")
def list_testimonials(runner, context):
    context["result"] = runner.invoke(cli, ["testimonials", "list"])


@when(parsers.parse("the admin deletes testimonial {testimonial_id}"))
def delete_testimonial(runner, context, testimonial_id):
    context["result"] = runner.invoke(cli, ["testimonials", "delete", testimonial_id, "--yes"])


@then(parsers.parse('a testimonial from "{name}" rated {rating:d} was saved'))
def testimonial_saved(context, name, rating):
    rows = context["store"].rows("client_feedbacks")
    assert [(r["client_name"], r["rating"]) for r in rows] == [(name, rating)]


@then("no testimonial was saved")
def no_testimonial_saved(context):
    assert context["store"].rows("client_feedbacks") == []
