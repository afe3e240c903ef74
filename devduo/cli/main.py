#!/usr/bin/env python3
"""
Dev Duo Admin Terminal CLI
Back-office for the Dev Duo site: contact messages, portfolio projects and
client testimonials.
"""

import logging
import click
from typing import Callable, Dict, Optional

from devduo.bus.events import bus, ALL_EVENTS, AUDITED_EVENTS
from devduo.datastore import get_datastore
from devduo.engine.entities import EntitySchema, MESSAGES, PROJECTS, TESTIMONIALS
from devduo.engine.forms import FormController, StagedFile
from devduo.engine.manager import EntityManager, Reconciliation
from devduo.errors import AuthorizationError, DataStoreError, RecordNotFound, ValidationError
from devduo.logging_config import configure_logging, log_call
from devduo.models import MESSAGE_STATUSES, PROJECT_CATEGORIES, COMMON_TECHNOLOGIES, MAX_RATING
from devduo.cli.loading import SCREEN_CHOICES, show_loading_screen


# =============================================================================
# SHARED HELPERS
# =============================================================================

def _load(schema: EntitySchema) -> EntityManager:
    """Build a manager and load its records. A failed load is reported and leaves an empty list."""
    manager = EntityManager(schema, get_datastore())
    manager.load()
    if manager.error:
        click.echo(f"Error fetching {schema.kind}: {manager.error}", err=True)
    return manager


def _select(manager: EntityManager, record_id: str):
    """Select a record, reporting unknown ids. Returns None when not found."""
    try:
        return manager.select(record_id)
    except RecordNotFound:
        logging.getLogger("devduo").warning(f"{manager.schema.kind} | id={record_id} not found")
        click.echo(f"{manager.schema.label.capitalize()} {record_id} not found.", err=True)
        return None


def _date(value) -> str:
    return value.strftime('%Y-%m-%d') if value else ''


def _confirmer(yes: bool) -> Callable[[str], bool]:
    return lambda prompt: yes or click.confirm(prompt, default=False)


def _delete(schema: EntitySchema, record_id: str, yes: bool) -> None:
    manager = _load(schema)
    if _select(manager, record_id) is None:
        return

    try:
        result = manager.delete(record_id, _confirmer(yes))
    except AuthorizationError as e:
        click.echo(f"Permission denied: {e}", err=True)
        return
    except DataStoreError as e:
        click.echo(f"Error deleting {schema.label}. Please try again. ({e})", err=True)
        click.echo(f"Reloaded {len(manager.records)} {schema.kind}.", err=True)
        return

    if result is Reconciliation.UNCHANGED:
        click.echo("Cancelled.")
    else:
        click.echo(f"✓ Deleted {schema.label} {record_id}")


def _fill(form: FormController, values: Dict, image: Optional[str]) -> bool:
    """Copy given option values into the draft and stage the image. Returns False on a bad image."""
    for name, value in values.items():
        if value is not None:
            form.set_field(name, value)
    if image:
        try:
            form.stage_file(StagedFile.from_path(image))
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            return False
    return True


def _submit(form: FormController):
    """Submit a form, reporting validation and save errors. Returns the saved record or None."""
    try:
        return form.submit()
    except ValidationError as e:
        click.echo("Please fill in all required fields:", err=True)
        for problem in e.problems:
            click.echo(f"  - {problem}", err=True)
    except DataStoreError as e:
        click.echo(f"Error saving {form.schema.label}: {e}", err=True)
    return None


def _audit(event):
    """Write admin changes to the log as one line each."""
    if event['event'] not in AUDITED_EVENTS:
        return
    details = {k: v for k, v in event.items() if k not in ('event', 'kind', 'record')}
    record = event.get('record')
    if record is not None:
        details['record_id'] = record.id
    logging.getLogger("devduo.audit").info(f"{event['event']} {event.get('kind')} {details}")


@click.group()
@click.option('--verbose', is_flag=True, help='Also print log lines to stderr')
def cli(verbose):
    """Dev Duo Admin - Messages, Projects & Testimonials"""
    configure_logging(console=verbose)
    bus.on(ALL_EVENTS, _audit)


# =============================================================================
# CONTACT MESSAGES
# =============================================================================

@cli.group()
def messages():
    """Read and triage contact form messages"""
    pass


@messages.command('list')
@click.option('--status', type=click.Choice(MESSAGE_STATUSES), help='Only messages with this status')
@log_call
def messages_list(status):
    """List messages, newest first"""
    manager = _load(MESSAGES)
    results = [m for m in manager.records if not status or m.status == status]

    if not results:
        click.echo("No messages found.")
        return

    click.echo(f"\nContact Messages ({len(results)}):\n")
    click.echo(f"{'ID':<38} {'Name':<22} {'Subject':<28} {'Status':<9} {'Received':<10}")
    click.echo("-" * 110)

    for m in results:
        click.echo(
            f"{m.id:<38} {m.name[:20]:<22} {(m.subject or 'No subject')[:26]:<28} "
            f"{m.status:<9} {_date(m.created_at):<10}"
        )


@messages.command('show')
@click.argument('message_id')
@log_call
def messages_show(message_id):
    """Show a message in full"""
    manager = _load(MESSAGES)
    message = _select(manager, message_id)
    if message is None:
        return

    click.echo(f"\n{'='*80}")
    click.echo(message.subject or 'No subject')
    click.echo(f"{'='*80}")
    click.echo(f"From:      {message.name} • {message.email}")
    click.echo(f"Received:  {message.created_at or '(unknown)'}")
    click.echo(f"Status:    {message.status}")
    click.echo(f"\n{message.message}\n")


@messages.command('status')
@click.argument('message_id')
@click.argument('status', type=click.Choice(MESSAGE_STATUSES))
@log_call
def messages_status(message_id, status):
    """Mark a message as new, read, replied or archived"""
    manager = _load(MESSAGES)
    if _select(manager, message_id) is None:
        return

    try:
        manager.update_status(message_id, status)
    except DataStoreError as e:
        click.echo(f"Error updating message status: {e}", err=True)
        return

    click.echo(f"✓ Message {message_id} marked as {manager.selected.status}")


@messages.command('add')
@click.option('--name', prompt='Name', help='Sender name')
@click.option('--email', prompt='Email', help='Sender email')
@click.option('--subject', help='Subject line')
@click.option('--message', 'body', prompt='Message', help='Message text')
@log_call
def messages_add(name, email, subject, body):
    """Record a contact message (e.g. one received by phone)"""
    form = FormController(EntityManager(MESSAGES, get_datastore()))
    _fill(form, {'name': name, 'email': email, 'subject': subject, 'message': body}, None)

    message = _submit(form)
    if message:
        click.echo(f"\n✓ Saved message {message.id} from {message.name}")


@messages.command('delete')
@click.argument('message_id')
@click.option('--yes', is_flag=True, help='Skip the confirmation prompt')
@log_call
def messages_delete(message_id, yes):
    """Delete a message (admins only)"""
    _delete(MESSAGES, message_id, yes)


# =============================================================================
# PROJECTS
# =============================================================================

@cli.group()
def projects():
    """Manage portfolio projects"""
    pass


def _tech_summary(technologies) -> str:
    shown = ', '.join(technologies[:3])
    if len(technologies) > 3:
        shown += f" +{len(technologies) - 3} more"
    return shown


@projects.command('list')
@click.option('--category', type=click.Choice(list(PROJECT_CATEGORIES)), help='Only this category')
@log_call
def projects_list(category):
    """List projects, newest first"""
    manager = _load(PROJECTS)
    results = [p for p in manager.records if not category or p.category == category]

    if not results:
        click.echo("No projects found.")
        return

    click.echo(f"\nProjects ({len(results)}):\n")
    click.echo(f"{'ID':<38} {'Title':<28} {'Category':<20} {'Technologies':<30}")
    click.echo("-" * 118)

    for p in results:
        click.echo(
            f"{p.id:<38} {p.title[:26]:<28} "
            f"{PROJECT_CATEGORIES.get(p.category, p.category)[:18]:<20} {_tech_summary(p.technologies):<30}"
        )


@projects.command('show')
@click.argument('project_id')
@log_call
def projects_show(project_id):
    """Show full project details"""
    manager = _load(PROJECTS)
    project = _select(manager, project_id)
    if project is None:
        return

    click.echo(f"\n{'='*80}")
    click.echo(f"PROJECT: {project.title}")
    click.echo(f"{'='*80}")
    click.echo(f"Category:      {PROJECT_CATEGORIES.get(project.category, project.category)}")
    click.echo(f"URL:           {project.project_url or '(not set)'}")
    click.echo(f"Image:         {project.image_url or '(not set)'}")
    click.echo(f"Technologies:  {', '.join(project.technologies) or '(none)'}")
    click.echo(f"Created:       {project.created_at}")
    click.echo(f"\n{project.description}\n")


@projects.command('categories')
def projects_categories():
    """List categories and suggested technologies"""
    click.echo("\nCategories:")
    for value, label in PROJECT_CATEGORIES.items():
        click.echo(f"  {value:<12} {label}")
    click.echo("\nSuggested technologies:")
    click.echo(f"  {', '.join(COMMON_TECHNOLOGIES)}\n")


@projects.command('add')
@click.option('--title', prompt='Title')
@click.option('--description', prompt='Description')
@click.option('--category', type=click.Choice(list(PROJECT_CATEGORIES)), default='web', show_default=True)
@click.option('--url', help='Live project URL')
@click.option('--tech', 'technologies', multiple=True, help='Technology used (repeatable)')
@click.option('--image', type=click.Path(exists=True, dir_okay=False), help='Screenshot to upload')
@log_call
def projects_add(title, description, category, url, technologies, image):
    """Add a portfolio project"""
    form = FormController(EntityManager(PROJECTS, get_datastore()))
    values = {'title': title, 'description': description, 'category': category, 'project_url': url}
    if not _fill(form, values, image):
        return
    for technology in technologies:
        form.toggle_technology(technology)

    project = _submit(form)
    if project:
        click.echo(f"\n✓ Created project {project.id}: {project.title}")


@projects.command('edit')
@click.argument('project_id')
@click.option('--title')
@click.option('--description')
@click.option('--category', type=click.Choice(list(PROJECT_CATEGORIES)))
@click.option('--url', help='Live project URL (empty string clears it)')
@click.option('--tech', 'technologies', multiple=True, help='Add/remove a technology (repeatable)')
@click.option('--image', type=click.Path(exists=True, dir_okay=False), help='Replace the screenshot')
@log_call
def projects_edit(project_id, title, description, category, url, technologies, image):
    """Edit a project (use options to set fields)"""
    if not any([title, description, category, url is not None, technologies, image]):
        click.echo("No updates specified. Use --title, --description, --category, --url, --tech or --image", err=True)
        return

    manager = _load(PROJECTS)
    project = _select(manager, project_id)
    if project is None:
        return

    form = FormController(manager)
    form.edit(project)
    values = {'title': title, 'description': description, 'category': category, 'project_url': url}
    if not _fill(form, values, image):
        return
    for technology in technologies:
        form.toggle_technology(technology)

    if _submit(form):
        click.echo(f"✓ Updated project {project_id}")


@projects.command('delete')
@click.argument('project_id')
@click.option('--yes', is_flag=True, help='Skip the confirmation prompt')
@log_call
def projects_delete(project_id, yes):
    """Delete a project"""
    _delete(PROJECTS, project_id, yes)


# =============================================================================
# TESTIMONIALS
# =============================================================================

@cli.group()
def testimonials():
    """Manage client testimonials"""
    pass


def _stars(rating: int) -> str:
    rating = max(0, min(rating or 0, MAX_RATING))
    return '★' * rating + '☆' * (MAX_RATING - rating)


@testimonials.command('list')
@log_call
def testimonials_list():
    """List testimonials, newest first"""
    manager = _load(TESTIMONIALS)

    if not manager.records:
        click.echo("No testimonials found.")
        return

    click.echo(f"\nTestimonials ({len(manager.records)}):\n")
    click.echo(f"{'ID':<38} {'Client':<24} {'Project':<24} {'Rating':<7} {'Created':<10}")
    click.echo("-" * 106)

    for t in manager.records:
        click.echo(
            f"{t.id:<38} {t.client_name[:22]:<24} {(t.project_title or '')[:22]:<24} "
            f"{_stars(t.rating):<7} {_date(t.created_at):<10}"
        )


@testimonials.command('show')
@click.argument('testimonial_id')
@log_call
def testimonials_show(testimonial_id):
    """Show a testimonial in full"""
    manager = _load(TESTIMONIALS)
    testimonial = _select(manager, testimonial_id)
    if testimonial is None:
        return

    click.echo(f"\n{'='*80}")
    click.echo(f"TESTIMONIAL: {testimonial.client_name}")
    click.echo(f"{'='*80}")
    click.echo(f"Email:    {testimonial.client_email or '(not set)'}")
    click.echo(f"Project:  {testimonial.project_title or '(not set)'}")
    click.echo(f"Rating:   {_stars(testimonial.rating)} ({testimonial.rating}/{MAX_RATING})")
    click.echo(f"Photo:    {testimonial.client_image_url or '(not set)'}")
    click.echo(f"Created:  {testimonial.created_at}")
    click.echo(f"\n\"{testimonial.feedback}\"\n")


@testimonials.command('add')
@click.option('--client-name', prompt='Client name')
@click.option('--feedback', prompt='Feedback')
@click.option('--email', help='Client email')
@click.option('--project', help='Project title')
@click.option('--rating', type=int, default=MAX_RATING, show_default=True, help='1-5 stars')
@click.option('--image', type=click.Path(exists=True, dir_okay=False), help='Client photo to upload')
@log_call
def testimonials_add(client_name, feedback, email, project, rating, image):
    """Add a client testimonial"""
    form = FormController(EntityManager(TESTIMONIALS, get_datastore()))
    values = {
        'client_name': client_name, 'feedback': feedback, 'client_email': email,
        'project_title': project, 'rating': rating,
    }
    if not _fill(form, values, image):
        return

    testimonial = _submit(form)
    if testimonial:
        click.echo(f"\n✓ Created testimonial {testimonial.id} from {testimonial.client_name} ({testimonial.rating}/{MAX_RATING})")


@testimonials.command('edit')
@click.argument('testimonial_id')
@click.option('--client-name')
@click.option('--feedback')
@click.option('--email', help='Client email (empty string clears it)')
@click.option('--project', help='Project title (empty string clears it)')
@click.option('--rating', type=int, help='1-5 stars')
@click.option('--image', type=click.Path(exists=True, dir_okay=False), help='Replace the client photo')
@log_call
def testimonials_edit(testimonial_id, client_name, feedback, email, project, rating, image):
    """Edit a testimonial (use options to set fields)"""
    values = {
        'client_name': client_name, 'feedback': feedback, 'client_email': email,
        'project_title': project, 'rating': rating,
    }
    if all(v is None for v in values.values()) and not image:
        click.echo("No updates specified. Use --client-name, --feedback, --email, --project, --rating or --image", err=True)
        return

    manager = _load(TESTIMONIALS)
    testimonial = _select(manager, testimonial_id)
    if testimonial is None:
        return

    form = FormController(manager)
    form.edit(testimonial)
    if not _fill(form, values, image):
        return

    if _submit(form):
        click.echo(f"✓ Updated testimonial {testimonial_id}")


@testimonials.command('delete')
@click.argument('testimonial_id')
@click.option('--yes', is_flag=True, help='Skip the confirmation prompt')
@log_call
def testimonials_delete(testimonial_id, yes):
    """Delete a testimonial"""
    _delete(TESTIMONIALS, testimonial_id, yes)


# =============================================================================
# LOADING SCREEN
# =============================================================================

@cli.command('splash')
@click.option('--type', 'screen', type=click.Choice(SCREEN_CHOICES), help='Override LOADING_SCREEN')
@log_call
def splash(screen):
    """Play the Dev Duo loading screen"""
    try:
        show_loading_screen(screen)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)


# =============================================================================
# MAIN
# =============================================================================

if __name__ == '__main__':
    cli()
