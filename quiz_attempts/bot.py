import discord
from discord.ext import commands
import logging
import asyncio
from typing import Any, Dict, Optional
import os

from .quiz_catalog import QuizCatalog
from .config_manager import ConfigManager
from .attempt_controller import AttemptController
from .models import AttemptStatus, QuestionType, ScoreResult

logger = logging.getLogger(__name__)

# Remaining seconds at which a learner gets a time warning
TIME_WARNINGS = (60, 10)


def format_duration(seconds: Optional[int]) -> str:
    if seconds is None:
        return "No time limit"
    return f"{seconds // 60}m {seconds % 60}s"


class QuizBot(commands.Bot):
    """Discord bot for taking quiz attempts"""

    def __init__(self, config=None):
        # Set up intents - minimal intents for slash commands
        intents = discord.Intents.none()
        intents.guilds = True  # Required for slash commands

        command_prefix = '!'
        if config and 'bot' in config:
            command_prefix = config['bot'].get('command_prefix', '!')

        super().__init__(
            command_prefix=command_prefix,  # Fallback prefix, mainly using slash commands
            intents=intents,
            help_command=None
        )

        self.app_config = config or {}

        self.catalog: Optional[QuizCatalog] = None
        self.config_manager: Optional[ConfigManager] = None
        self.attempt_controller: Optional[AttemptController] = None

    async def setup_hook(self):
        """Called when the bot is starting up"""
        try:
            logger.info("Setting up bot components...")

            self.config_manager = ConfigManager()
            if self.app_config:
                await self.apply_configuration()

            self.catalog = QuizCatalog(
                self.config_manager.get_quiz_directory(),
                default_passing_score=self.config_manager.get_default_passing_score(),
            )
            await self.load_quiz_data()

            tick_interval = self.app_config.get('quiz', {}).get('tick_interval', 1.0)
            self.attempt_controller = AttemptController(
                self.catalog, self.config_manager, tick_interval=tick_interval
            )

            await self.setup_commands()

            logger.info("Bot setup completed successfully")

        except Exception as e:
            logger.error(f"Error during bot setup: {e}")
            raise

    async def apply_configuration(self):
        """Apply settings from configuration file to the config manager."""
        rejected = self.config_manager.apply_config(self.app_config)
        for message in rejected:
            logger.warning(f"Configuration value ignored: {message}")
        logger.info("Configuration applied")

    async def setup_commands(self):
        """Register all slash commands"""
        try:
            @self.tree.command(name="help", description="Display available commands and their descriptions")
            async def help_command(interaction: discord.Interaction):
                await self.handle_help(interaction)

            @self.tree.command(name="quizzes", description="List available quizzes and your attempts")
            async def quizzes_command(interaction: discord.Interaction):
                await self.handle_quizzes(interaction)

            @self.tree.command(name="take", description="Start or resume a quiz attempt")
            async def take_command(interaction: discord.Interaction, quiz: str):
                await self.handle_take(interaction, quiz)

            @self.tree.command(name="question", description="Show a question of your current attempt")
            async def question_command(interaction: discord.Interaction, number: int):
                await self.handle_question(interaction, number)

            @self.tree.command(name="answer", description="Answer a question (comma separate multiple options)")
            async def answer_command(interaction: discord.Interaction, number: int, value: str):
                await self.handle_answer(interaction, number, value)

            @self.tree.command(name="submit", description="Request to submit your attempt")
            async def submit_command(interaction: discord.Interaction):
                await self.handle_submit(interaction)

            @self.tree.command(name="confirm", description="Confirm submission and get your score")
            async def confirm_command(interaction: discord.Interaction):
                await self.handle_confirm(interaction)

            @self.tree.command(name="cancel", description="Cancel the submit request and keep answering")
            async def cancel_command(interaction: discord.Interaction):
                await self.handle_cancel(interaction)

            @self.tree.command(name="pause", description="Pause your attempt and continue it later")
            async def pause_command(interaction: discord.Interaction):
                await self.handle_pause(interaction)

            @self.tree.command(name="abandon", description="Discard your current attempt")
            async def abandon_command(interaction: discord.Interaction):
                await self.handle_abandon(interaction)

            @self.tree.command(name="status", description="Show your current attempt status")
            async def status_command(interaction: discord.Interaction):
                await self.handle_status(interaction)

            @self.tree.command(name="results", description="Show the result of your latest attempt")
            async def results_command(interaction: discord.Interaction, quiz: Optional[str] = None):
                await self.handle_results(interaction, quiz)

            logger.info("Slash commands registered successfully")

        except Exception as e:
            logger.error(f"Error setting up commands: {e}")
            raise

    async def load_quiz_data(self):
        """Load quiz files from the quizzes directory"""
        try:
            loaded_quizzes = self.catalog.load_quiz_files()
            logger.info(f"Loaded {len(loaded_quizzes)} quizzes from {self.catalog.quiz_directory}")
        except Exception as e:
            logger.error(f"Error loading quiz data: {e}")

    async def on_ready(self):
        """Called when the bot has successfully connected to Discord"""
        try:
            logger.info(f"Bot is ready! Logged in as {self.user}")
            logger.info(f"Bot is in {len(self.guilds)} guilds")

            print(f"🤖 {self.user} is Ready and Online!")
            print(f"📊 Connected to {len(self.guilds)} server(s)")

            try:
                synced = await self.tree.sync()
                logger.info(f"Synced {len(synced)} slash commands")
                print(f"⚡ Synced {len(synced)} slash commands")
            except Exception as e:
                logger.error(f"Failed to sync slash commands: {e}")
                print(f"❌ Failed to sync slash commands: {e}")

        except Exception as e:
            logger.error(f"Error in on_ready event: {e}")

    async def on_error(self, event, *args, **kwargs):
        """Handle general bot errors"""
        logger.error(f"An error occurred in event {event}", exc_info=True)

    async def close(self):
        """Suspend running attempts before disconnecting"""
        if self.attempt_controller is not None:
            await self.attempt_controller.shutdown()
        await super().close()

    # --- callbacks passed to the controller ---

    def _make_tick_callback(self, channel, user_id: int):
        async def on_tick(remaining: Optional[int]):
            if remaining in TIME_WARNINGS:
                try:
                    await channel.send(f"⏰ <@{user_id}> {remaining} seconds left on your quiz!")
                except discord.HTTPException as e:
                    logger.warning(f"Failed to send time warning: {e}")
        return on_tick

    def _make_expiry_callback(self, channel, user_id: int):
        async def on_expired(result: Dict[str, Any]):
            embed = self.build_score_embed(
                result['quiz_title'], result['score'],
                title="⏰ Time's Up! Attempt Submitted",
                attempt_number=result['attempt_number'],
                elapsed_seconds=result['elapsed_seconds'],
            )
            try:
                await channel.send(content=f"<@{user_id}>", embed=embed)
            except discord.HTTPException as e:
                logger.error(f"Failed to post timeout result: {e}")
        return on_expired

    # --- formatting ---

    def build_score_embed(
        self,
        quiz_title: str,
        score: ScoreResult,
        title: str = "📊 Quiz Result",
        attempt_number: Optional[int] = None,
        elapsed_seconds: Optional[int] = None,
    ) -> discord.Embed:
        embed = discord.Embed(
            title=title,
            description=f"**{quiz_title}**",
            color=0x00ff00 if score.passed else 0xff6600
        )
        embed.add_field(
            name="🎯 Score",
            value=(
                f"{score.percent}% ({score.earned_points}/{score.total_points} points)\n"
                f"Correct: {score.correct_count}/{score.total_questions}\n"
                f"{'✅ Passed' if score.passed else '❌ Not passed'}"
            ),
            inline=False
        )
        details = []
        if attempt_number is not None:
            details.append(f"Attempt: {attempt_number}")
        if elapsed_seconds is not None:
            details.append(f"Time spent: {format_duration(elapsed_seconds)}")
        if details:
            embed.add_field(name="📋 Details", value="\n".join(details), inline=False)
        if score.pending_manual_grading:
            embed.add_field(
                name="📝 Awaiting Grading",
                value=f"{len(score.pending_manual_grading)} answer(s) will be graded manually",
                inline=False
            )
        return embed

    def build_question_embed(self, data: Dict[str, Any]) -> discord.Embed:
        question = data['question']
        embed = discord.Embed(
            title=f"❓ Question {data['number']}/{data['total_questions']}",
            description=question['text'] or "(no text)",
            color=0x0099ff
        )
        if question.get('options'):
            embed.add_field(
                name="Options",
                value="\n".join(f"`{o['id']}` - {o['text']}" for o in question['options']),
                inline=False
            )
        hints = {
            QuestionType.MULTI_CHOICE.value: "Select every correct option, separated by commas",
            QuestionType.FREE_TEXT.value: "Type your answer",
        }
        embed.add_field(
            name="How to answer",
            value=f"{hints.get(question['type'], 'Select one option')} with `/answer {data['number']} <value>`",
            inline=False
        )
        current = data['current_answer']
        if current is not None:
            shown = ", ".join(current) if isinstance(current, list) else current
            embed.add_field(name="Your answer", value=shown, inline=True)
        if data['remaining_seconds'] is not None:
            embed.add_field(name="⏱️ Time Remaining", value=format_duration(data['remaining_seconds']), inline=True)
        embed.set_footer(text=f"{question['points']} point{'s' if question['points'] != 1 else ''}")
        return embed

    # --- command handlers ---

    async def handle_help(self, interaction: discord.Interaction):
        """Handle /help command"""
        try:
            help_embed = discord.Embed(
                title="🎯 Quiz Bot Commands",
                description="Take quizzes, answer at your own pace and get scored",
                color=0x00ff00
            )
            help_embed.add_field(
                name="📚 Quizzes",
                value=(
                    "`/quizzes` - List available quizzes and your attempts\n"
                    "`/take <quiz>` - Start a quiz, or resume a paused one\n"
                    "`/results [quiz]` - Show your latest result"
                ),
                inline=False
            )
            help_embed.add_field(
                name="✏️ During an Attempt",
                value=(
                    "`/question <number>` - Show a question\n"
                    "`/answer <number> <value>` - Answer a question\n"
                    "`/status` - Show progress and time left\n"
                    "`/submit` - Request submission\n"
                    "`/confirm` - Confirm submission\n"
                    "`/cancel` - Cancel the submit request\n"
                    "`/pause` - Pause and continue later\n"
                    "`/abandon` - Discard the attempt"
                ),
                inline=False
            )
            help_embed.add_field(
                name="⚙️ Current Settings",
                value=f"```\n{self.config_manager.get_settings_summary()}\n```",
                inline=False
            )
            help_embed.set_footer(text="Use slash commands to interact with the bot")

            await interaction.response.send_message(embed=help_embed, ephemeral=True)

        except Exception as e:
            logger.error(f"Error in help command: {e}")
            await self.send_error_response(interaction, "Failed to display help information", "❌ Help Error")

    async def handle_quizzes(self, interaction: discord.Interaction):
        """Handle /quizzes command"""
        try:
            overview = self.attempt_controller.list_quizzes(interaction.user.id)
            if not overview:
                embed = discord.Embed(
                    title="❌ No Quizzes Available",
                    description="No quiz files found or all files failed to load.",
                    color=0xff0000
                )
                if self.catalog.has_load_errors():
                    errors = self.catalog.get_load_errors()
                    error_text = "\n".join(errors[:3])
                    if len(errors) > 3:
                        error_text += "\n... and more"
                    embed.add_field(name="Loading Errors", value=f"```\n{error_text}\n```", inline=False)
                await interaction.response.send_message(embed=embed, ephemeral=True)
                return

            embed = discord.Embed(title="📚 Available Quizzes", color=0x0099ff)
            for quiz in overview[:25]:
                attempts = f"{quiz['attempts_used']}"
                if quiz['max_attempts'] is not None:
                    attempts += f"/{quiz['max_attempts']}"
                lines = [
                    f"Questions: {quiz['question_count']}",
                    f"Time limit: {format_duration(quiz['time_limit_seconds'])}",
                    f"Attempts: {attempts}",
                ]
                if quiz['best_percent'] is not None:
                    lines.append(f"Best: {quiz['best_percent']}%")
                if quiz['has_open_attempt']:
                    lines.append("⏸️ Paused attempt waiting")
                embed.add_field(name=f"{quiz['title']} (`{quiz['quiz_id']}`)", value="\n".join(lines), inline=False)

            embed.set_footer(text="Use /take <quiz> to start")
            await interaction.response.send_message(embed=embed, ephemeral=True)

        except Exception as e:
            logger.error(f"Error in quizzes command: {e}")
            await self.send_error_response(interaction, "Failed to list quizzes", "❌ Quiz List Error")

    async def handle_take(self, interaction: discord.Interaction, quiz_id: str):
        """Handle /take command"""
        try:
            user_id = interaction.user.id
            channel = interaction.channel
            result = await self.attempt_controller.start_attempt(
                user_id,
                quiz_id,
                channel_id=interaction.channel_id,
                tick_callback=self._make_tick_callback(channel, user_id),
                expiry_callback=self._make_expiry_callback(channel, user_id),
            )

            if not result['success']:
                await self.send_error_response(interaction, result['user_message'], "❌ Quiz Start Failed")
                return

            if result.get('expired'):
                outcome = result['result']
                embed = self.build_score_embed(
                    outcome['quiz_title'], outcome['score'],
                    title="⏰ Time Ran Out While Paused",
                    attempt_number=outcome['attempt_number'],
                    elapsed_seconds=outcome['elapsed_seconds'],
                )
            else:
                info = result['attempt_info']
                embed = discord.Embed(
                    title="▶️ Quiz Resumed" if result['resumed'] else "🎯 Quiz Started!",
                    description=f"**{info['quiz_title']}**",
                    color=0x00ff00
                )
                embed.add_field(
                    name="📊 Attempt Details",
                    value=(
                        f"Attempt: {info['attempt_number']}\n"
                        f"Questions: {info['total_questions']}\n"
                        f"Answered: {info['answered_count']}\n"
                        f"Time limit: {format_duration(info['remaining_seconds'])}"
                    ),
                    inline=False
                )
                if info['status'] == AttemptStatus.COMPLETED.value:
                    controls = "Your submission is waiting: `/confirm` to finish or `/cancel` to keep working"
                else:
                    controls = "Use `/question 1` to begin, `/submit` when you are done"
                embed.add_field(name="🎮 Controls", value=controls, inline=False)

        except Exception as e:
            logger.error(f"Error in take command: {e}")
            await self.send_error_response(interaction, "Failed to start quiz", "❌ Quiz Start Error")
            return

        # The attempt is already running, only the reply is retried
        max_retries = 2
        for attempt in range(max_retries):
            try:
                await interaction.response.send_message(embed=embed, ephemeral=True)
                return
            except discord.HTTPException as e:
                if not await self.handle_discord_api_error(e, "take", interaction) or attempt == max_retries - 1:
                    return

    async def handle_question(self, interaction: discord.Interaction, number: int):
        """Handle /question command"""
        try:
            result = self.attempt_controller.get_question(interaction.user.id, number)
            if not result['success']:
                await self.send_error_response(interaction, result['user_message'])
                return
            await interaction.response.send_message(embed=self.build_question_embed(result), ephemeral=True)

        except Exception as e:
            logger.error(f"Error in question command: {e}")
            await self.send_error_response(interaction, "Failed to show question", "❌ Question Error")

    async def handle_answer(self, interaction: discord.Interaction, number: int, value: str):
        """Handle /answer command"""
        try:
            result = self.attempt_controller.answer_question(interaction.user.id, number, value)
            if not result['success']:
                await self.send_error_response(interaction, result['user_message'], "❌ Answer Not Saved")
                return

            await self.send_info_response(
                interaction,
                f"Answered {result['answered_count']}/{result['total_questions']} questions.",
                f"✅ Answer saved for question {number}"
            )

        except Exception as e:
            logger.error(f"Error in answer command: {e}")
            await self.send_error_response(interaction, "Failed to save answer", "❌ Answer Error")

    async def handle_submit(self, interaction: discord.Interaction):
        """Handle /submit command"""
        try:
            result = self.attempt_controller.request_submit(interaction.user.id)
            if not result['success']:
                await self.send_error_response(interaction, result['user_message'])
                return

            embed = discord.Embed(title="📨 Ready to Submit?", description=result['message'], color=0xffaa00)
            if result['unanswered']:
                embed.add_field(
                    name="Unanswered Questions",
                    value=", ".join(str(n) for n in result['unanswered']),
                    inline=False
                )
            await interaction.response.send_message(embed=embed, ephemeral=True)

        except Exception as e:
            logger.error(f"Error in submit command: {e}")
            await self.send_error_response(interaction, "Failed to request submission", "❌ Submit Error")

    async def handle_confirm(self, interaction: discord.Interaction):
        """Handle /confirm command"""
        try:
            result = self.attempt_controller.confirm_submit(interaction.user.id)
            if not result['success']:
                await self.send_error_response(interaction, result['user_message'])
                return

            outcome = result['result']
            embed = self.build_score_embed(
                outcome['quiz_title'], outcome['score'],
                title="🎉 Attempt Submitted!",
                attempt_number=outcome['attempt_number'],
                elapsed_seconds=outcome['elapsed_seconds'],
            )
            embed.set_footer(text="Use /results to see the breakdown")
            await interaction.response.send_message(embed=embed, ephemeral=True)

        except Exception as e:
            logger.error(f"Error in confirm command: {e}")
            await self.send_error_response(interaction, "Failed to submit attempt", "❌ Submit Error")

    async def handle_cancel(self, interaction: discord.Interaction):
        """Handle /cancel command"""
        try:
            result = await self.attempt_controller.cancel_submit(interaction.user.id)
            if not result['success']:
                await self.send_error_response(interaction, result['user_message'])
                return

            if result['expired']:
                outcome = result['result']
                embed = self.build_score_embed(
                    outcome['quiz_title'], outcome['score'],
                    title="⏰ Time's Up! Attempt Submitted",
                    attempt_number=outcome['attempt_number'],
                    elapsed_seconds=outcome['elapsed_seconds'],
                )
                await interaction.response.send_message(embed=embed, ephemeral=True)
                return

            info = result['attempt_info']
            await self.send_info_response(
                interaction,
                f"Answered {info['answered_count']}/{info['total_questions']}. "
                f"Time left: {format_duration(info['remaining_seconds'])}",
                "▶️ Keep Answering"
            )

        except Exception as e:
            logger.error(f"Error in cancel command: {e}")
            await self.send_error_response(interaction, "Failed to cancel submission", "❌ Cancel Error")

    async def handle_pause(self, interaction: discord.Interaction):
        """Handle /pause command"""
        try:
            result = await self.attempt_controller.suspend_attempt(interaction.user.id)
            if not result['success']:
                await self.send_error_response(interaction, result['user_message'])
                return
            await self.send_info_response(interaction, result['message'], "⏸️ Attempt Paused")

        except Exception as e:
            logger.error(f"Error in pause command: {e}")
            await self.send_error_response(interaction, "Failed to pause attempt", "❌ Pause Error")

    async def handle_abandon(self, interaction: discord.Interaction):
        """Handle /abandon command"""
        try:
            result = await self.attempt_controller.abandon_attempt(interaction.user.id)
            if not result['success']:
                await self.send_info_response(interaction, result['user_message'], "ℹ️ No Active Attempt")
                return
            await self.send_info_response(interaction, result['message'], "🛑 Attempt Abandoned")

        except Exception as e:
            logger.error(f"Error in abandon command: {e}")
            await self.send_error_response(interaction, "Failed to abandon attempt", "❌ Abandon Error")

    async def handle_status(self, interaction: discord.Interaction):
        """Handle /status command"""
        try:
            info = self.attempt_controller.get_attempt_progress(interaction.user.id)
            if info is None:
                await self.send_info_response(
                    interaction,
                    "You have no quiz attempt in progress. Use `/quizzes` to pick one.",
                    "ℹ️ No Active Attempt"
                )
                return

            embed = discord.Embed(
                title="📊 Attempt Status",
                description=f"**{info['quiz_title']}**",
                color=0x00ff00
            )
            embed.add_field(
                name="Progress",
                value=(
                    f"Answered: {info['answered_count']}/{info['total_questions']}\n"
                    f"Attempt: {info['attempt_number']}"
                ),
                inline=True
            )
            embed.add_field(
                name="⏱️ Timing",
                value=(
                    f"Time left: {format_duration(info['remaining_seconds'])}\n"
                    f"Time spent: {format_duration(info['elapsed_seconds'])}"
                ),
                inline=True
            )
            embed.set_footer(text=self.attempt_controller.get_attempt_status_summary(interaction.user.id))
            await interaction.response.send_message(embed=embed, ephemeral=True)

        except Exception as e:
            logger.error(f"Error in status command: {e}")
            await self.send_error_response(interaction, "Failed to get attempt status", "❌ Status Error")

    async def handle_results(self, interaction: discord.Interaction, quiz_id: Optional[str] = None):
        """Handle /results command"""
        try:
            result = self.attempt_controller.get_results(interaction.user.id, quiz_id)
            if not result['success']:
                await self.send_info_response(interaction, result['user_message'], "ℹ️ No Results")
                return

            record = result['record']
            embed = self.build_score_embed(
                result['quiz_title'], record.score,
                attempt_number=record.attempt_number,
                elapsed_seconds=record.elapsed_ticks,
            )
            attempts = f"{result['attempts_used']}"
            if result['max_attempts'] is not None:
                attempts += f"/{result['max_attempts']}"
            embed.add_field(
                name="🏆 History",
                value=f"Attempts used: {attempts}\nBest score: {result['best_percent']}%",
                inline=False
            )

            for item in (result['breakdown'] or [])[:20]:
                if item['requires_manual_grading'] and not item['is_correct']:
                    mark = "📝"
                else:
                    mark = "✅" if item['is_correct'] else "❌"
                lines = [f"{item['points_earned']}/{item['points_possible']} points"]
                if item['correct_answer']:
                    lines.append(f"Answer: {item['correct_answer']}")
                if item['explanation']:
                    lines.append(item['explanation'])
                embed.add_field(name=f"{mark} {item['text'][:200] or item['question_id']}", value="\n".join(lines), inline=False)

            await interaction.response.send_message(embed=embed, ephemeral=True)

        except Exception as e:
            logger.error(f"Error in results command: {e}")
            await self.send_error_response(interaction, "Failed to get results", "❌ Results Error")

    # --- response helpers ---

    async def handle_discord_api_error(self, error: Exception, operation: str, interaction: discord.Interaction = None) -> bool:
        """
        Handle Discord API errors with appropriate retry logic and user feedback.

        Returns:
            True if the operation should be retried, False otherwise
        """
        if isinstance(error, discord.HTTPException):
            if error.status == 429:
                retry_after = getattr(error, 'retry_after', 5)
                logger.warning(f"Rate limited during {operation}, waiting {retry_after}s")
                await asyncio.sleep(retry_after)
                return True

            elif error.status in [500, 502, 503, 504]:
                logger.warning(f"Discord server error during {operation}: {error.status}")
                await asyncio.sleep(2)
                return True

            elif error.status == 403:
                logger.error(f"Permission denied during {operation}: {error}")
                if interaction:
                    await self.send_error_response(
                        interaction,
                        "Bot doesn't have permission to perform this action. Please check bot permissions.",
                        "❌ Permission Error"
                    )
                return False

            else:
                logger.error(f"Discord API error during {operation}: {error}")
                if interaction:
                    await self.send_error_response(
                        interaction,
                        "Discord API error occurred. Please try again in a moment.",
                        "❌ Discord Error"
                    )
                return False

        logger.error(f"Unexpected error during {operation}: {error}")
        if interaction:
            await self.send_error_response(interaction, "An unexpected error occurred. Please try again.")
        return False

    async def send_error_response(self, interaction: discord.Interaction, message: str, title: str = "❌ Error"):
        """Send formatted error response to user"""
        try:
            embed = discord.Embed(
                title=title,
                description=message,
                color=0xff0000
            )
            embed.set_footer(text="If this error persists, try using /help for available commands")

            if interaction.response.is_done():
                await interaction.followup.send(embed=embed, ephemeral=True)
            else:
                await interaction.response.send_message(embed=embed, ephemeral=True)
        except discord.HTTPException:
            logger.error("Failed to send error response to user")

    async def send_info_response(self, interaction: discord.Interaction, message: str, title: str = "ℹ️ Information"):
        """Send formatted info response to user"""
        try:
            embed = discord.Embed(
                title=title,
                description=message,
                color=0x6699ff
            )

            if interaction.response.is_done():
                await interaction.followup.send(embed=embed, ephemeral=True)
            else:
                await interaction.response.send_message(embed=embed, ephemeral=True)
        except discord.HTTPException:
            logger.error("Failed to send info response to user")


async def run_bot(token=None, config=None):
    """Run the bot with proper error handling"""
    if not token:
        token = os.getenv('DISCORD_BOT_TOKEN')

    if not token:
        logger.error("No Discord bot token provided")
        return

    bot = QuizBot(config)

    try:
        logger.info("Starting Discord Quiz Bot...")
        await bot.start(token)
    except discord.LoginFailure:
        logger.error("Invalid bot token provided")
    except discord.HTTPException as e:
        logger.error(f"HTTP error occurred: {e}")
    finally:
        if not bot.is_closed():
            await bot.close()
