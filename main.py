#!/usr/bin/env python3
"""
Dev Duo Admin - Interactive Menu Launcher
Run this file to access all admin commands through a simple menu.

Usage:
    python main.py
"""

import subprocess
import sys
import os

PYTHON = sys.executable
ADMIN = [PYTHON, "-m", "devduo.cli.main"]

# Project root on PYTHONPATH so 'devduo' package is importable
ENV = os.environ.copy()
ENV["PYTHONPATH"] = os.path.dirname(os.path.abspath(__file__))


def run(args: list[str], pause: bool = True):
    """Run an admin CLI command and return to menu when done."""
    print()
    subprocess.run(ADMIN + args, env=ENV)
    if pause:
        print()
        input("  Press Enter to return to menu...")


def prompt(label: str, required: bool = True) -> str:
    """Prompt user for input. Returns empty string if optional and skipped."""
    while True:
        value = input(f"  {label}: ").strip()
        if value:
            return value
        if not required:
            return ""
        print("  (required - please enter a value)")


def prompt_optional(label: str) -> str:
    return prompt(f"{label} (optional, Enter to skip)", required=False)


def clear():
    os.system("cls" if os.name == "nt" else "clear")


# =============================================================================
# COMMAND HANDLERS
# =============================================================================

def messages_list():
    args = ["messages", "list"]
    s = prompt_optional("Filter by status (new/read/replied/archived)")
    if s: args += ["--status", s]
    run(args)

def messages_show():
    mid = prompt("Message ID")
    run(["messages", "show", mid])

def messages_status():
    mid = prompt("Message ID")
    status = prompt("New status (new/read/replied/archived)")
    run(["messages", "status", mid, status])

def messages_add():
    args = ["messages", "add"]
    args += ["--name", prompt("Sender name")]
    args += ["--email", prompt("Sender email")]
    s = prompt_optional("Subject")
    if s: args += ["--subject", s]
    args += ["--message", prompt("Message")]
    run(args)

def messages_delete():
    mid = prompt("Message ID")
    run(["messages", "delete", mid])

def projects_list():
    args = ["projects", "list"]
    c = prompt_optional("Filter by category (web/mobile/desktop/ai/blockchain/other)")
    if c: args += ["--category", c]
    run(args)

def projects_categories():
    run(["projects", "categories"])

def projects_show():
    pid = prompt("Project ID")
    run(["projects", "show", pid])

def projects_add():
    args = ["projects", "add"]
    args += ["--title", prompt("Title")]
    args += ["--description", prompt("Description")]
    c = prompt_optional("Category (web/mobile/desktop/ai/blockchain/other, default: web)")
    u = prompt_optional("Live project URL")
    if c: args += ["--category", c]
    if u: args += ["--url", u]
    techs = prompt_optional("Technologies - comma separated (e.g. React, Python)")
    for t in techs.split(","):
        if t.strip(): args += ["--tech", t.strip()]
    image = prompt_optional("Screenshot file path")
    if image: args += ["--image", image]
    run(args)

def projects_edit():
    pid = prompt("Project ID")
    args = ["projects", "edit", pid]
    t = prompt_optional("New title")
    d = prompt_optional("New description")
    c = prompt_optional("New category")
    u = prompt_optional("New URL")
    image = prompt_optional("New screenshot file path")
    if t: args += ["--title", t]
    if d: args += ["--description", d]
    if c: args += ["--category", c]
    if u: args += ["--url", u]
    if image: args += ["--image", image]
    run(args)

def projects_delete():
    pid = prompt("Project ID")
    run(["projects", "delete", pid])

def testimonials_list():
    run(["testimonials", "list"])

def testimonials_show():
    tid = prompt("Testimonial ID")
    run(["testimonials", "show", tid])

def testimonials_add():
    args = ["testimonials", "add"]
    args += ["--client-name", prompt("Client name")]
    args += ["--feedback", prompt("Feedback")]
    e = prompt_optional("Client email")
    p = prompt_optional("Project title")
    r = prompt_optional("Rating 1-5 (default: 5)")
    image = prompt_optional("Client photo file path")
    if e: args += ["--email", e]
    if p: args += ["--project", p]
    if r: args += ["--rating", r]
    if image: args += ["--image", image]
    run(args)

def testimonials_edit():
    tid = prompt("Testimonial ID")
    args = ["testimonials", "edit", tid]
    n = prompt_optional("New client name")
    f = prompt_optional("New feedback")
    r = prompt_optional("New rating 1-5")
    if n: args += ["--client-name", n]
    if f: args += ["--feedback", f]
    if r: args += ["--rating", r]
    run(args)

def testimonials_delete():
    tid = prompt("Testimonial ID")
    run(["testimonials", "delete", tid])


# =============================================================================
# MENU LAYOUT
# =============================================================================

MENU = [
    ("CONTACT MESSAGES", [
        ("List messages",                messages_list),
        ("Read a message",               messages_show),
        ("Change message status",        messages_status),
        ("Record a message",             messages_add),
        ("Delete message",               messages_delete),
    ]),
    ("PROJECTS", [
        ("List projects",                projects_list),
        ("Show project details",         projects_show),
        ("Add project",                  projects_add),
        ("Edit project",                 projects_edit),
        ("Delete project",               projects_delete),
        ("Categories & technologies",    projects_categories),
    ]),
    ("TESTIMONIALS", [
        ("List testimonials",            testimonials_list),
        ("Show testimonial",             testimonials_show),
        ("Add testimonial",              testimonials_add),
        ("Edit testimonial",             testimonials_edit),
        ("Delete testimonial",           testimonials_delete),
    ]),
]


def print_menu():
    clear()
    print("=" * 50)
    print("   DEV DUO - ADMIN BACK-OFFICE")
    print("=" * 50)

    n = 1
    numbering = {}  # maps display number -> handler function

    for section, commands in MENU:
        print(f"\n  {section}")
        print(f"  {'-' * len(section)}")
        for label, handler in commands:
            print(f"  {n:>2}.  {label}")
            numbering[n] = handler
            n += 1

    print("\n" + "=" * 50)
    print("   0.  Exit")
    print("=" * 50)
    return numbering


def main():
    clear()
    run(["splash"], pause=False)

    while True:
        numbering = print_menu()

        try:
            choice = input("\n  Select a command: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\n\n  Goodbye!\n")
            break

        if choice == "0" or choice.lower() in ("q", "quit", "exit"):
            print("\n  Goodbye!\n")
            break

        try:
            n = int(choice)
            if n in numbering:
                clear()
                numbering[n]()
            else:
                print(f"\n  Invalid selection: {choice}")
                input("  Press Enter to continue...")
        except ValueError:
            print(f"\n  Please enter a number.")
            input("  Press Enter to continue...")


if __name__ == "__main__":
    main()
