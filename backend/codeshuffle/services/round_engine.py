"""Round Engine - the team-level state machine behind every student operation.

Invariants:
    - Every operation is one read-modify-write of one team row
    - start_session activates a team exactly once; later calls only read
    - rotate permutes only incomplete members and always advances the round
    - run never aborts because one test case failed at the gateway
    - run commits the ledger entry before the completion write
    - Remaining times in every response come from the server clock

Design Decisions:
    - Pure transitions live in core/team_state.py; this class only loads,
      applies and persists (functional core / imperative shell)
    - Settings via an injected SettingsCache, clock and rng injected for tests
    - RoundListener hook so the optional scheduler learns about new rounds
      without the engine knowing a scheduler exists
"""

import asyncio
import logging
import random
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from codeshuffle.core.countdown import remaining_seconds, utc_now
from codeshuffle.core.domain_types import DEFAULT_LANGUAGE, Language
from codeshuffle.core.errors import (
    ErrorContext, EventExpiredError, JudgeGatewayError,
    MissingProblemReferenceError, NoTestCasesError, ProblemNotAssignedError,
    ProblemNotFoundError, SessionNotStartedError,
)
from codeshuffle.core.gateway_protocols import Clock, JudgeGateway, RoundListener
from codeshuffle.core.judge_verdict import (
    CaseResult, RunSummary, grade_case, judge_error_case,
)
from codeshuffle.core.member_view import build_member_view
from codeshuffle.core.rotation import pick_problems
from codeshuffle.core.team_state import TeamState
from codeshuffle.models.team import Team
from codeshuffle.services.settings_cache import SettingsCache
from codeshuffle.services.submission_ledger import SubmissionLedger
from codeshuffle.services.team_store import (
    apply_state, get_problem, get_team_by_id, get_team_or_404,
    load_catalog_by_tier, require_member, to_state,
)

logger = logging.getLogger(__name__)


class RoundEngine:
    """Student-facing operations for one DB session."""

    def __init__(
        self,
        db: AsyncSession,
        settings_cache: SettingsCache,
        judge: JudgeGateway,
        clock: Clock = utc_now,
        rng: random.Random | None = None,
        listener: RoundListener | None = None,
        cpu_time_limits: dict[str, float] | None = None,
        case_timeout_seconds: float | None = None,
    ):
        self.db = db
        self.settings_cache = settings_cache
        self.judge = judge
        self.clock = clock
        self.rng = rng or random.SystemRandom()
        self.listener = listener
        self.cpu_time_limits = cpu_time_limits or {}
        self.case_timeout_seconds = case_timeout_seconds
        self.ledger = SubmissionLedger(db)

    # ─── Queries ─────────────────────────────────────────────────

    async def login(self, team_name: str, handle: str) -> dict:
        team = await get_team_or_404(self.db, team_name)
        state = to_state(team)
        require_member(state, handle)
        logger.info(
            "Member logged in",
            extra={"team_name": team_name, "handle": handle},
        )
        return {
            "team_name": state.name,
            "handle": handle,
            "member_index": state.member_index(handle),
            "is_active": state.is_active,
        }

    async def get_state(self, team_name: str, handle: str) -> dict:
        team = await get_team_or_404(self.db, team_name)
        state = to_state(team)
        require_member(state, handle)
        return await self._view(state, handle)

    async def check_shuffle(
        self, team_name: str, handle: str, client_round: int,
    ) -> dict:
        """Snapshot plus whether the round moved past the client's copy."""
        team = await get_team_or_404(self.db, team_name)
        state = to_state(team)
        require_member(state, handle)
        view = await self._view(state, handle)
        view["shuffle_happened"] = state.current_round > client_round
        return view

    # ─── Session ─────────────────────────────────────────────────

    async def start_session(self, team_name: str, handle: str) -> dict:
        team = await get_team_or_404(self.db, team_name, for_update=True)
        state = to_state(team)
        require_member(state, handle)

        if state.is_active:
            view = await self._view(state, handle)
            view["already_active"] = True
            return view

        catalog = await load_catalog_by_tier(self.db)
        problem_ids = pick_problems(catalog, self.rng)
        now = self.clock()
        state.activate(problem_ids, now)
        apply_state(team, state)
        await self.db.commit()

        logger.info(
            "Session started",
            extra={"team_name": team_name, "handle": handle, "round_number": 1},
        )
        await self._notify(team, state)
        view = await self._view(state, handle)
        view["already_active"] = False
        return view

    async def save_code(
        self,
        team_name: str,
        handle: str,
        problem_id: str | None,
        language: str,
        code: str,
    ) -> dict:
        context = ErrorContext(team_name=team_name, handle=handle)
        if not problem_id:
            raise MissingProblemReferenceError(context)

        team = await get_team_or_404(self.db, team_name, for_update=True)
        state = to_state(team)
        member = require_member(state, handle)
        if not state.is_active:
            raise SessionNotStartedError(team_name, context)
        if member.completed:
            return {"saved": False, "message": "Already completed"}
        if problem_id not in state.problem_ids:
            raise ProblemNotAssignedError(problem_id, context)

        state.store_code(handle, problem_id, Language(language).value, code, self.clock())
        apply_state(team, state)
        await self.db.commit()
        return {"saved": True, "message": "Code saved"}

    async def rotate(
        self, team_name: str, expected_round: int | None = None,
    ) -> dict:
        """Advance one round. expected_round makes the call a guarded no-op."""
        team = await get_team_or_404(self.db, team_name, for_update=True)
        return await self._rotate_team(team, expected_round)

    async def expire_event(
        self,
        team_name: str,
        handle: str,
        code: str | None = None,
        language: str | None = None,
    ) -> dict:
        """Set event_expired. Optionally store the caller's final code first."""
        team = await get_team_or_404(self.db, team_name, for_update=True)
        state = to_state(team)
        member = require_member(state, handle)

        code_saved = False
        problem_id = state.problem_id_for(member)
        if code is not None and problem_id is not None:
            lang = Language(language).value if language else DEFAULT_LANGUAGE.value
            code_saved = state.store_code(handle, problem_id, lang, code, self.clock())

        newly_expired = state.expire()
        if newly_expired or code_saved:
            apply_state(team, state)
            await self.db.commit()
        if newly_expired:
            logger.info(
                "Event expired",
                extra={"team_name": team_name, "handle": handle},
            )
        return {
            "event_expired": True,
            "newly_expired": newly_expired,
            "code_saved": code_saved,
        }

    # ─── Run ─────────────────────────────────────────────────────

    async def run(
        self, team_name: str, handle: str, code: str, language: str,
    ) -> dict:
        """Judge code against every test case of the member's current problem."""
        context = ErrorContext(team_name=team_name, handle=handle)
        language = Language(language).value
        team = await get_team_or_404(self.db, team_name)
        state = to_state(team)
        member = require_member(state, handle)
        if state.event_expired:
            raise EventExpiredError(team_name, context)
        if not state.is_active:
            raise SessionNotStartedError(team_name, context)

        problem_id = state.problem_id_for(member)
        problem = await get_problem(self.db, problem_id)
        if problem is None:
            raise ProblemNotFoundError(str(problem_id), context)
        cases = list(problem.test_cases or [])
        if not cases:
            raise NoTestCasesError(problem_id, context)

        summary = await self._judge_all(
            code, language, cases, self.cpu_time_limits.get(problem.difficulty),
        )
        logger.info(
            "Run judged",
            extra={
                "team_name": team_name, "handle": handle,
                "problem_id": problem_id,
                "passed": summary.passed_count, "total": summary.total,
            },
        )

        now = self.clock()
        if summary.any_passed:
            await self.ledger.record(
                team.id, team_name, handle, problem_id, code, language,
                summary, now,
            )

        completed = member.completed
        all_team_completed = state.all_completed
        if summary.all_passed:
            completed, all_team_completed = await self._complete(
                team, handle, problem_id, language, code, now,
            )

        return {
            "results": [r.to_dict() for r in summary.results],
            "passed_count": summary.passed_count,
            "total_test_cases": summary.total,
            "all_passed": summary.all_passed,
            "completed": completed,
            "all_team_completed": all_team_completed,
        }

    async def _complete(
        self, team: Team, handle: str, problem_id: str, language: str,
        code: str, now: datetime,
    ) -> tuple[bool, bool]:
        # The row may have rotated while the judge was busy
        await self.db.refresh(team, with_for_update=True)
        state = to_state(team)
        member = require_member(state, handle)
        if member.completed:
            return True, state.all_completed
        if state.problem_id_for(member) != problem_id:
            logger.warning(
                "Slot moved during run; completion not recorded",
                extra={"team_name": state.name, "handle": handle,
                       "problem_id": problem_id},
            )
            state.code_store.setdefault(problem_id, {})[language] = code
            state.last_languages[problem_id] = language
            apply_state(team, state)
            await self.db.commit()
            return False, state.all_completed

        state.store_code(handle, problem_id, language, code, now)
        team_done = state.complete_member(handle, now)
        apply_state(team, state)
        await self.db.commit()
        logger.info(
            "Member completed",
            extra={"team_name": state.name, "handle": handle,
                   "problem_id": problem_id},
        )
        if team_done:
            logger.info(
                "Team completed all problems",
                extra={"team_name": state.name},
            )
        return True, team_done

    async def _judge_all(
        self, code: str, language: str, cases: list[dict],
        cpu_time_limit: float | None,
    ) -> RunSummary:
        results = await asyncio.gather(*(
            self._judge_case(code, language, case, cpu_time_limit)
            for case in cases
        ))
        return RunSummary(results=list(results))

    async def _judge_case(
        self, code: str, language: str, case: dict,
        cpu_time_limit: float | None,
    ) -> CaseResult:
        case_input = case.get("input", "")
        expected = case.get("expected_output", "")
        try:
            call = self.judge.execute(code, language, case_input, cpu_time_limit)
            if self.case_timeout_seconds is not None:
                outcome = await asyncio.wait_for(call, self.case_timeout_seconds)
            else:
                outcome = await call
        except JudgeGatewayError as e:
            logger.warning(f"Judge call failed: {e.message}")
            return judge_error_case(case_input, expected, e.message)
        except asyncio.TimeoutError:
            logger.warning("Judge call exceeded the case timeout")
            return judge_error_case(case_input, expected, "timed out")
        except Exception as e:
            # Any gateway bug stays inside its own case
            logger.error(f"Unexpected judge failure: {e}", exc_info=True)
            return judge_error_case(case_input, expected, str(e))
        return grade_case(case_input, expected, outcome)

    # ─── Scheduler entry points ──────────────────────────────────

    async def rotate_due(self, team_id: str, expected_round: int) -> dict | None:
        """Rotate when the round clock really ran out. None when nothing fired."""
        team = await get_team_by_id(self.db, team_id, for_update=True)
        if team is None:
            return None
        state = to_state(team)
        if (
            not state.is_active or state.event_expired or state.all_completed
            or state.current_round != expected_round
        ):
            return None
        settings = await self.settings_cache.get()
        if remaining_seconds(
            settings.rotation_interval_seconds, state.round_started_at,
            self.clock(),
        ) > 0:
            await self._notify(team, state)
            return None
        return await self._rotate_team(team, expected_round)

    async def expire_due(self, team_id: str) -> bool:
        """Expire when the event clock really ran out."""
        team = await get_team_by_id(self.db, team_id, for_update=True)
        if team is None:
            return False
        state = to_state(team)
        if not state.is_active or state.event_expired:
            return False
        settings = await self.settings_cache.get()
        if remaining_seconds(
            settings.event_duration_seconds, state.event_started_at,
            self.clock(),
        ) > 0:
            await self._notify(team, state)
            return False
        state.expire()
        apply_state(team, state)
        await self.db.commit()
        logger.info("Event expired by timer", extra={"team_name": state.name})
        return True

    # ─── Helpers ─────────────────────────────────────────────────

    async def _rotate_team(
        self, team: Team, expected_round: int | None,
    ) -> dict:
        state = to_state(team)
        if not state.is_active:
            raise SessionNotStartedError(
                state.name, ErrorContext(team_name=state.name),
            )
        if expected_round is not None and state.current_round != expected_round:
            return {
                "rotated": False,
                "shuffled": False,
                "current_round": state.current_round,
            }

        permuted = state.rotate(self.clock())
        apply_state(team, state)
        await self.db.commit()
        logger.info(
            "Round advanced" if permuted else "Round advanced without permutation",
            extra={"team_name": state.name, "round_number": state.current_round},
        )
        await self._notify(team, state)
        return {
            "rotated": True,
            "shuffled": permuted,
            "current_round": state.current_round,
        }

    async def _notify(self, team: Team, state: TeamState) -> None:
        """Tell the listener a round clock restarted, with settings loaded first."""
        if self.listener is None or state.round_started_at is None:
            return
        await self.settings_cache.get()
        self.listener.round_started(
            str(team.id), state.current_round,
            state.round_started_at, state.event_started_at,
        )

    async def _view(self, state: TeamState, handle: str) -> dict:
        settings = await self.settings_cache.get()
        problem_id = state.problem_id_for(state.member(handle))
        problem = await get_problem(self.db, problem_id)
        return build_member_view(
            state, handle,
            problem.to_dict() if problem else None,
            settings, self.clock(),
        )
