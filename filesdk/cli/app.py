import questionary
from rich.console import Console
from rich.table import Table

from filesdk.errors import FileSDKError
from filesdk.models.file import FileRecord, UploadOptions
from filesdk.services.file_service import FileService
from filesdk.settings import settings

console = Console()

UPLOAD = "Upload a local file"
DELETE = "Delete a file"
ARCHIVE = "Archive a file"
EXIT = "Exit"


def _build_service() -> FileService:
    return FileService.from_settings(settings)


def parse_qualities(raw: str) -> list[float]:
    """Parse a comma separated list such as ``"0.5, 200"``."""
    return [float(part) for part in raw.replace(" ", "").split(",") if part]


def _show_record(record: FileRecord) -> None:
    table = Table(title=f"{record.name} ({record.id})")
    table.add_column("Quality", justify="right")
    table.add_column("Object")
    table.add_column("URL")
    for variant in sorted(record.compressions, key=lambda v: v.quality):
        table.add_row(f"{variant.quality:g}", variant.bucket_file_name, variant.url)
    console.print(table)


def upload_menu(service: FileService) -> None:
    path = questionary.path("File to upload:").ask()
    if not path:
        return
    name = questionary.text("Object name (empty to use the file name):").ask()
    raw_qualities = questionary.text("Qualities, comma separated (e.g. 0.5,200):").ask() or ""

    try:
        qualities = parse_qualities(raw_qualities)
    except ValueError:
        console.print("[red]Qualities must be numbers.[/red]")
        return

    fields: dict = {"qualities": qualities}
    if name:
        fields["blob_name"] = name

    try:
        record = service.upload_from_local_path(path, UploadOptions(**fields))
    except (FileSDKError, OSError) as exc:
        console.print(f"[red]Upload failed:[/red] {exc}")
        return
    _show_record(record)


def delete_menu(service: FileService, soft: bool) -> None:
    file_id = questionary.text("File id:").ask()
    if not file_id:
        return
    verb = "archive" if soft else "permanently delete"
    if not questionary.confirm(f"Really {verb} {file_id}?", default=False).ask():
        return
    try:
        service.delete_one(file_id, soft=soft)
    except FileSDKError as exc:
        console.print(f"[red]Failed:[/red] {exc}")
        return
    console.print(f"[green]{'Archived' if soft else 'Deleted'} {file_id}[/green]")


def main_menu() -> None:
    service = _build_service()

    console.print()
    console.print("[bold]File SDK[/bold]", style="cyan")
    console.print()

    while True:
        choice = questionary.select("Main menu", choices=[UPLOAD, DELETE, ARCHIVE, EXIT]).ask()

        if choice is None or choice == EXIT:
            console.print("[bold]Bye![/bold]")
            break
        elif choice == UPLOAD:
            upload_menu(service)
        elif choice == DELETE:
            delete_menu(service, soft=False)
        elif choice == ARCHIVE:
            delete_menu(service, soft=True)
