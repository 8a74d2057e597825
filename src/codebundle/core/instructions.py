# src/codebundle/core/instructions.py
from codebundle.core.formatter import FILE_MARKER
from codebundle.models import BundleResult, Project


def instructions_filename(project: Project) -> str:
    return f"{project.name}-claude-instructions.md"


def _multi_bundle_section(bundle_count: int) -> str:
    return (
        "\n"
        "## Working with Multiple Bundles:\n"
        f"This project is split across {bundle_count} bundles. Make sure to:\n"
        "1. Upload ALL bundles together\n"
        "2. Reference the correct bundle when discussing specific files\n"
        "3. Consider the complete project context across all bundles\n"
    )


def generate_instructions(result: BundleResult, project: Project) -> str:
    """
    Builds the companion document that explains the bundle format to the
    reader of the bundles. Pure function of its arguments.
    """
    bundle_count = len(result.bundles)
    total_files = result.total_files
    total_kb = round(result.total_size / 1024)

    sections = [
        f'You are working with a code bundle containing multiple files from the "{project.name}" project.\n',
        "## Bundle Format:\n"
        "Each file in the bundle is marked with:\n"
        f"{FILE_MARKER} [path/to/file]\n",
        "## Important Instructions:\n"
        "1. When referencing code, ALWAYS specify the exact file path using: `path/to/file`\n"
        '2. When suggesting changes, use: "In file `path/to/file`, change..."\n'
        '3. When creating new files, use: "Create new file `path/to/newfile.ext` with:"\n'
        f"4. Maintain awareness that you're working with {total_files} files across {bundle_count} bundle(s)\n",
        "## Project Structure:\n"
        "The files follow the original project structure. "
        "Use the file paths to understand the project organization.\n",
        "## Bundle Information:\n"
        f"- Total files: {total_files}\n"
        f"- Number of bundles: {bundle_count}\n"
        f"- Total size: {total_kb}KB\n",
    ]
    if bundle_count > 1:
        sections.append(_multi_bundle_section(bundle_count))

    sections.append(
        f"Please confirm you understand the bundle format and are ready to work with the {project.name} project files."
    )
    return "\n".join(sections)
