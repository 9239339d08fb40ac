"""
Faculty dashboard view.

Paginated, filterable roster with live LeetCode statistics. The view listens
to its DashboardSession and re-renders the message at most once per refresh
interval while results are still arriving.
"""

import asyncio
import io
from typing import Optional

import discord
from discord.ui import View, Button, Select

from tracker.constants import PaginationConstants
from tracker.data_models.roster import ALL, DashboardPage, ProjectedRow, RollType, SortDirective
from tracker.data_models.stats import FetchState
from tracker.utils.error_embeds import ErrorEmbeds
from tracker.utils.logger import setup_logger

logger = setup_logger(__name__)

SORT_LABELS = {
    SortDirective.NONE: "Roll Number",
    SortDirective.DESCENDING: "Solved (high → low)",
    SortDirective.ASCENDING: "Solved (low → high)",
}

ROLL_TYPE_LABELS = {
    RollType.ALL: "All Students",
    RollType.REGULAR: "Regular",
    RollType.LATERAL_ENTRY: "Lateral Entry",
}


def format_solved(row: ProjectedRow) -> str:
    """Badge for the solved column."""
    state = row.outcome.state
    if state is FetchState.PENDING:
        return "Loading"
    if state is FetchState.FAILED:
        return "Error"
    if state is FetchState.IDLE or row.entry is None:
        return "N/A"
    return str(row.entry.solved)


def format_row(row: ProjectedRow) -> str:
    student = row.student
    header = f"**{student.name}** · `{student.roll_number}` · {student.branch}-{student.section} · `{student.leetcode_username or '-'}`"

    if row.outcome.state is not FetchState.READY or row.entry is None:
        detail = format_solved(row)
        if row.outcome.state is FetchState.FAILED and row.outcome.reason:
            detail += f" ({row.outcome.reason})"
        return f"{header}\n└ {detail}"

    snapshot = row.outcome.snapshot
    activity = (
        f"{snapshot.recent_submissions_7}/{snapshot.recent_submissions_30}"
        if snapshot.recent_submissions_7 is not None else "?/?"
    )
    return (
        f"{header}\n"
        f"└ Solved **{row.entry.solved}** · Score **{row.entry.score}** · "
        f"E{snapshot.easy_solved}/M{snapshot.medium_solved}/H{snapshot.hard_solved} · "
        f"7d/30d {activity}"
    )


def export_summary(row_count: int, pending: int) -> str:
    message = f"📄 Exported {row_count} students."
    if pending:
        message += f" {pending} rows were still loading, their stats may be stale or empty."
    return message


def build_dashboard_embed(page: DashboardPage, notice: Optional[str] = None) -> discord.Embed:
    """Render one dashboard page."""
    state = page.view_state
    filters = [f"Sorted by: **{SORT_LABELS[state.sort]}**"]
    if state.section != ALL:
        filters.append(f"Section **{state.section}**")
    if state.branch != ALL:
        filters.append(f"Branch **{state.branch}**")
    if state.roll_type is not RollType.ALL:
        filters.append(ROLL_TYPE_LABELS[state.roll_type])
    if state.search_text:
        filters.append(f"Search `{state.search_text}`")

    embed = discord.Embed(
        title="LeetCode Progress Dashboard",
        description=" | ".join(filters),
        color=discord.Color.orange() if page.pending else discord.Color.blue()
    )

    if notice:
        embed.description += f"\n\n⚠️ {notice}"

    if not page.rows:
        if page.roster_size:
            embed.description += "\n\nNo students match the current filters."
        else:
            embed.description += "\n\nNo students have registered yet."
    else:
        embed.description += "\n\n" + "\n".join(format_row(row) for row in page.rows)

    status = f"{page.pending} loading" if page.pending else "all loaded"
    if page.failed:
        status += f", {page.failed} failed"
    embed.set_footer(
        text=f"Page {page.current_page}/{page.total_pages} | Showing {page.total_students}/{page.roster_size} students | {status}"
    )
    return embed


class DashboardView(View):
    """Interactive dashboard bound to one faculty user's session."""

    def __init__(
        self,
        session,
        owner_id: int,
        refresh_interval: float = PaginationConstants.DEFAULT_REFRESH_INTERVAL,
        *,
        timeout: int = 900
    ):
        super().__init__(timeout=timeout)
        self.session = session
        self.owner_id = owner_id
        self.refresh_interval = refresh_interval
        self.current_page = 1
        self.message: Optional[discord.Message] = None

        self._dirty = asyncio.Event()
        self._refresher: Optional[asyncio.Task] = None
        self.session.add_listener(self._mark_dirty)

        self._update_items()

    # Rendering

    def current_page_data(self) -> DashboardPage:
        page = self.session.page(self.current_page)
        self.current_page = page.current_page
        return page

    def build_embed(self) -> discord.Embed:
        return build_dashboard_embed(self.current_page_data(), self.session.last_notice)

    def _update_items(self):
        """Rebuild components for the current page and filters."""
        self.clear_items()
        page = self.current_page_data()

        prev_button = Button(
            label="Previous",
            style=discord.ButtonStyle.primary,
            disabled=page.current_page <= 1,
            custom_id="dashboard:prev",
            row=0
        )
        prev_button.callback = self.previous_page
        self.add_item(prev_button)

        next_button = Button(
            label="Next",
            style=discord.ButtonStyle.primary,
            disabled=page.current_page >= page.total_pages,
            custom_id="dashboard:next",
            row=0
        )
        next_button.callback = self.next_page
        self.add_item(next_button)

        search_button = Button(label="Search", emoji="🔍", style=discord.ButtonStyle.secondary, custom_id="dashboard:search", row=0)
        search_button.callback = self.open_search
        self.add_item(search_button)

        refresh_button = Button(label="Refresh", emoji="🔄", style=discord.ButtonStyle.secondary, custom_id="dashboard:refresh", row=0)
        refresh_button.callback = self.refresh
        self.add_item(refresh_button)

        export_button = Button(label="Export CSV", emoji="📄", style=discord.ButtonStyle.success, custom_id="dashboard:export", row=0)
        export_button.callback = self.export
        self.add_item(export_button)

        state = self.session.view_state
        self.add_item(FilterSelect("section", "Section", self.session.sections(), state.section, row=1))
        self.add_item(FilterSelect("branch", "Branch", self.session.branches(), state.branch, row=2))
        self.add_item(SortSelect(state.sort, row=3))
        if self.session.settings.classifier:
            self.add_item(RollTypeSelect(state.roll_type, row=4))

    async def rerender(self, interaction: discord.Interaction):
        """Apply a user change in response to a component interaction."""
        self._update_items()
        await interaction.response.edit_message(embed=self.build_embed(), view=self)
        self._dirty.clear()

    # Live updates

    def _mark_dirty(self):
        self._dirty.set()

    def start(self, message: discord.Message):
        self.message = message
        if self._refresher is None:
            self._refresher = asyncio.create_task(self._refresh_loop(), name=f"dashboard-refresh:{self.owner_id}")

    async def _refresh_loop(self):
        while not self.is_finished():
            await self._dirty.wait()
            await asyncio.sleep(self.refresh_interval)
            self._dirty.clear()
            if self.message is None or self.session.is_closed:
                continue
            self._update_items()
            try:
                await self.message.edit(embed=self.build_embed(), view=self)
            except discord.NotFound:
                logger.info(f"Dashboard message for {self.owner_id} is gone, stopping updates")
                self.stop()
            except discord.HTTPException as e:
                logger.warning(f"Failed to update dashboard for {self.owner_id}: {e}")

    def stop(self):
        self.session.remove_listener(self._mark_dirty)
        if self._refresher is not None and not self._refresher.done():
            if self._refresher is not asyncio.current_task():
                self._refresher.cancel()
        super().stop()

    async def on_timeout(self):
        self.stop()
        if self.message is None:
            return
        for item in self.children:
            item.disabled = True
        try:
            await self.message.edit(view=self)
        except discord.HTTPException as e:
            logger.debug(f"Could not disable expired dashboard: {e}")

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if interaction.user.id != self.owner_id:
            await interaction.response.send_message(embed=ErrorEmbeds.permission_denied(), ephemeral=True)
            return False
        if self.session.is_closed:
            await interaction.response.send_message(embed=ErrorEmbeds.no_dashboard(), ephemeral=True)
            return False
        return True

    # Callbacks

    async def previous_page(self, interaction: discord.Interaction):
        """Navigate to previous page."""
        if self.current_page > 1:
            self.current_page -= 1
        await self.rerender(interaction)

    async def next_page(self, interaction: discord.Interaction):
        """Navigate to next page."""
        self.current_page += 1
        await self.rerender(interaction)

    async def open_search(self, interaction: discord.Interaction):
        await interaction.response.send_modal(SearchModal(self))

    async def refresh(self, interaction: discord.Interaction):
        """Reload the roster and re-fetch every student's stats."""
        await interaction.response.defer()
        self.session.refresh_stats()
        await self.session.load()
        self._update_items()
        await interaction.followup.edit_message(
            message_id=interaction.message.id,
            embed=self.build_embed(),
            view=self
        )
        if self.session.last_notice:
            await interaction.followup.send(embed=ErrorEmbeds.storage_error(), ephemeral=True)

    async def export(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True, thinking=True)
        try:
            artifact = self.session.export()
        except Exception as e:
            logger.error(f"Dashboard export failed: {e}", exc_info=True)
            await interaction.followup.send(embed=ErrorEmbeds.command_error("Export failed."), ephemeral=True)
            return

        await interaction.followup.send(
            export_summary(artifact.row_count, self.session.pending_count),
            file=discord.File(fp=io.BytesIO(artifact.data), filename=artifact.filename),
            ephemeral=True
        )


class FilterSelect(Select):
    """Section or branch dropdown."""

    def __init__(self, attribute: str, label: str, values, current: str, row: int):
        self.attribute = attribute
        options = [
            discord.SelectOption(label=f"All {label}s", value=ALL, default=current == ALL)
        ]
        # Discord caps a select at 25 options
        for value in list(values)[:24]:
            options.append(discord.SelectOption(label=f"{label} {value}", value=value, default=current == value))

        super().__init__(
            placeholder=f"Filter by {label.lower()}...",
            options=options,
            custom_id=f"dashboard:{attribute}",
            row=row
        )

    async def callback(self, interaction: discord.Interaction):
        view: DashboardView = self.view
        value = self.values[0]
        if self.attribute == "section":
            view.session.set_section(value)
        else:
            view.session.set_branch(value)
        view.current_page = 1
        await view.rerender(interaction)


class SortSelect(Select):
    """Dropdown for changing sort order."""

    def __init__(self, current_sort: SortDirective, row: int):
        options = [
            discord.SelectOption(
                label=SORT_LABELS[SortDirective.NONE],
                value=SortDirective.NONE.value,
                description="Default order",
                default=current_sort is SortDirective.NONE
            ),
            discord.SelectOption(
                label=SORT_LABELS[SortDirective.DESCENDING],
                value=SortDirective.DESCENDING.value,
                description="Most problems solved first",
                default=current_sort is SortDirective.DESCENDING
            ),
            discord.SelectOption(
                label=SORT_LABELS[SortDirective.ASCENDING],
                value=SortDirective.ASCENDING.value,
                description="Fewest problems solved first",
                default=current_sort is SortDirective.ASCENDING
            )
        ]

        super().__init__(
            placeholder="Sort by...",
            options=options,
            custom_id="dashboard:sort",
            row=row
        )

    async def callback(self, interaction: discord.Interaction):
        view: DashboardView = self.view
        view.session.set_sort(SortDirective(self.values[0]))
        view.current_page = 1
        await view.rerender(interaction)


class RollTypeSelect(Select):
    """Regular / lateral entry filter, shown only when roll ranges are configured."""

    def __init__(self, current: RollType, row: int):
        options = [
            discord.SelectOption(label=label, value=roll_type.value, default=current is roll_type)
            for roll_type, label in ROLL_TYPE_LABELS.items()
        ]
        super().__init__(
            placeholder="Filter by admission type...",
            options=options,
            custom_id="dashboard:roll_type",
            row=row
        )

    async def callback(self, interaction: discord.Interaction):
        view: DashboardView = self.view
        view.session.set_roll_type(RollType(self.values[0]))
        view.current_page = 1
        await view.rerender(interaction)


class SearchModal(discord.ui.Modal, title="Search Students"):
    """Name or roll number substring search. Submit empty to clear."""

    def __init__(self, dashboard_view: DashboardView):
        super().__init__(timeout=300)
        self.dashboard_view = dashboard_view
        self.query = discord.ui.TextInput(
            label="Name or roll number",
            placeholder="Leave empty to clear the search",
            required=False,
            max_length=100,
            default=dashboard_view.session.view_state.search_text or None
        )
        self.add_item(self.query)

    async def on_submit(self, interaction: discord.Interaction):
        view = self.dashboard_view
        view.session.set_search(self.query.value)
        view.current_page = 1
        await view.rerender(interaction)
