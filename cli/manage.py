#!/usr/bin/env python3
"""
Campus Connector CLI - Run the server and inspect students from the shell.

Commands:
    python -m cli.manage serve                            Run the web server
    python -m cli.manage status                           Show configuration and storage status
    python -m cli.manage classify FILENAME                Show the classifier response for a filename
    python -m cli.manage classify FILENAME --student-id ST101 --missing-folder
    python -m cli.manage students list                    List all students
    python -m cli.manage students show ST101              Show one student's documents
    python -m cli.manage students search QUERY            Search by name, department or ID
"""

import argparse
import logging
import sys

from config import get_config, print_config_status, validate_config
from database.models import LINK_FIELDS
from database.store import StudentStore
from classifier import DocumentClassifier, create_classifier, parse_response

logger = logging.getLogger(__name__)


def get_store() -> StudentStore:
    return StudentStore(get_config().database.students_path)


def print_student_row(student):
    folder = student.drive_folder_id or "-"
    print(f"  {student.student_id:<14} {student.name[:24]:<24} {student.department[:16]:<16} "
          f"{student.document_count:>4} docs  folder: {folder}")


def cmd_serve(args):
    """Run the web server."""
    from web.app import run_server

    config = get_config()
    host = args.host or config.server.host
    port = args.port or config.server.port

    print(f"Starting Campus Connector on http://{host}:{port}")
    run_server(host, port, args.debug or config.server.debug)


def cmd_status(args):
    """Show configuration status and which storage backend would be used."""
    config = get_config()
    print_config_status(config)

    errors = validate_config(config)
    if errors:
        print("\nConfiguration Errors:")
        for error in errors:
            print(f"  - {error}")

    if args.check_storage:
        from storage import create_storage_backend

        backend = create_storage_backend(config)
        print(f"\nActive storage backend: {backend.name}")

    store = get_store()
    print(f"\nStudents on file: {len(store.find_all())}")


def cmd_classify(args):
    """Show what the classifier decides for a filename."""
    classifier = DocumentClassifier() if args.no_llm else create_classifier(get_config())

    metadata = {"studentId": args.student_id} if args.student_id else None
    response = classifier.classify(args.filename, metadata, folder_exists=not args.missing_folder)
    action = parse_response(response)

    print(f"File: {args.filename}")
    print(f"Classifier: {type(classifier).__name__}")
    print("-" * 50)
    print(response)
    print("-" * 50)
    print(f"Action: {action.action or 'unparseable'}")
    if action.is_actionable:
        print(f"Student ID: {action.student_id}")
        print(f"Document Type: {action.document_type}")
        print(f"Needs Folder: {action.needs_folder}")
    elif action.error:
        print(f"Error: {action.error}")
        sys.exit(1)


def cmd_students_list(args):
    students = get_store().find_all()
    if not students:
        print("No students on file.")
        return

    print(f"Students ({len(students)}):")
    for student in students:
        print_student_row(student)


def cmd_students_show(args):
    """Show one student and their document links."""
    student = get_store().find_by_student_id(args.student_id)
    if not student:
        print(f"Student '{args.student_id}' not found")
        sys.exit(1)

    print(f"{student.student_id} - {student.name or '(no name)'}")
    print("=" * 60)
    print(f"Department: {student.department or '-'}")
    print(f"Email: {student.email or '-'}")
    print(f"Phone: {student.phone or '-'}")
    print(f"Folder: {student.drive_folder_id or 'not created'}")

    for doc_type in LINK_FIELDS:
        links = student.links_for(doc_type)
        print(f"\n{doc_type} ({len(links)}):")
        for link in links:
            print(f"  [{link.id[:8]}] {link.file_name}")
            print(f"      {link.shareable_link}")


def cmd_students_search(args):
    students = get_store().search(args.query)
    if not students:
        print(f"No students match '{args.query}'")
        return

    print(f"Matches for '{args.query}' ({len(students)}):")
    for student in students:
        print_student_row(student)


def main():
    logging.basicConfig(
        level=getattr(logging, get_config().server.log_level, logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(
        description="Campus Connector document intake",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Run the server on another port:
    python -m cli.manage serve --port 8080

  Check how a file would be filed:
    python -m cli.manage classify "ST102_Math_HW.pdf" --no-llm

  Show a student's documents:
    python -m cli.manage students show ST102
"""
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the web server")
    serve_parser.add_argument("--host", help="Host to bind to")
    serve_parser.add_argument("-p", "--port", type=int, help="Port to listen on")
    serve_parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    serve_parser.set_defaults(func=cmd_serve)

    # Status command
    status_parser = subparsers.add_parser("status", help="Show config status")
    status_parser.add_argument(
        "--check-storage",
        action="store_true",
        help="Connect to Google Drive and report the backend that would be used",
    )
    status_parser.set_defaults(func=cmd_status)

    # Classify command
    classify_parser = subparsers.add_parser("classify", help="Classify a filename")
    classify_parser.add_argument("filename", help="Upload filename to classify")
    classify_parser.add_argument("-s", "--student-id", help="Explicit student ID (as sent by the upload form)")
    classify_parser.add_argument("--missing-folder", action="store_true", help="Pretend the student has no folder yet")
    classify_parser.add_argument("--no-llm", action="store_true", help="Use the regex classifier only")
    classify_parser.set_defaults(func=cmd_classify)

    # Students command group
    students_parser = subparsers.add_parser("students", help="Inspect student records")
    students_sub = students_parser.add_subparsers(dest="students_command", help="Student commands")

    list_parser = students_sub.add_parser("list", help="List all students")
    list_parser.set_defaults(func=cmd_students_list)

    show_parser = students_sub.add_parser("show", help="Show one student")
    show_parser.add_argument("student_id", help="Student ID")
    show_parser.set_defaults(func=cmd_students_show)

    search_parser = students_sub.add_parser("search", help="Search students")
    search_parser.add_argument("query", help="Name, department or student ID fragment")
    search_parser.set_defaults(func=cmd_students_search)

    args = parser.parse_args()

    if not hasattr(args, "func"):
        if args.command == "students":
            students_parser.print_help()
        else:
            parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
