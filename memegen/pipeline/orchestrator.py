"""Meme pipeline orchestration.

One run: normalize -> {classify mood, generate caption} concurrently ->
select photo -> compose -> optionally upload.

A run either returns an artifact (possibly with a non-fatal upload outcome
attached) or raises a single MemeError. No partial artifacts are returned and
the cache is only written after composition succeeds.
"""

from __future__ import annotations

import asyncio

import httpx
from loguru import logger

from memegen.config.settings import Settings
from memegen.errors import ActivityFetchError, AssetNotFoundError, CompositionError
from memegen.integrations.strava.client import StravaClient
from memegen.integrations.strava.credentials import CredentialProvider, StaticCredentialProvider
from memegen.llm.completion import TextCompleter
from memegen.models.activity import ActivityRecord, ActivityRef
from memegen.models.meme import MemeRunResult
from memegen.pipeline.cache import ArtifactCache
from memegen.pipeline.caption import CaptionGenerator, caption_preset
from memegen.pipeline.composer import FontProvider, ImageComposer
from memegen.pipeline.mood import MoodClassifier, mood_preset
from memegen.pipeline.motivation import motivation_for
from memegen.pipeline.normalizer import normalize_activity
from memegen.pipeline.photos import AssetStore, HttpAssetStore, LocalAssetStore, PhotoSelector
from memegen.pipeline.upload import ClientFactory, UploadAdapter


class MemePipeline:
    """Stateless across runs apart from the caller-owned artifact cache."""

    def __init__(
        self,
        *,
        mood_classifier: MoodClassifier,
        caption_generator: CaptionGenerator,
        photo_selector: PhotoSelector,
        asset_store: AssetStore,
        composer: ImageComposer,
        credentials: CredentialProvider,
        client_factory: ClientFactory,
        uploader: UploadAdapter,
        cache: ArtifactCache | None = None,
        auto_upload: bool = False,
    ) -> None:
        self._mood = mood_classifier
        self._caption = caption_generator
        self._photos = photo_selector
        self._assets = asset_store
        self._composer = composer
        self._credentials = credentials
        self._client_factory = client_factory
        self._uploader = uploader
        self.cache = cache if cache is not None else ArtifactCache()
        self._auto_upload = auto_upload

    @classmethod
    def from_settings(
        cls,
        config: Settings,
        *,
        credentials: CredentialProvider | None = None,
        completer: TextCompleter | None = None,
        cache: ArtifactCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> MemePipeline:
        """Wire a pipeline from configuration.

        Args:
            config: Settings instance (passed explicitly, never read globally)
            credentials: Credential provider; defaults to the token/scopes in config
            completer: Text completer; defaults to the configured LLM provider
            cache: Artifact cache shared across runs
            transport: Optional httpx transport for Strava and asset calls (tests)
        """
        credentials = credentials or StaticCredentialProvider.from_settings(config)
        completer = completer or TextCompleter(
            provider=config.llm_provider,
            api_key=config.openai_api_key,
            timeout_seconds=config.llm_timeout_seconds,
        )

        def client_factory(access_token: str) -> StravaClient:
            return StravaClient(access_token, timeout=config.strava_timeout_seconds, transport=transport)

        asset_store: AssetStore
        if config.asset_base_url:
            asset_store = HttpAssetStore(config.asset_base_url, timeout=config.strava_timeout_seconds, transport=transport)
        else:
            asset_store = LocalAssetStore(config.asset_dir)

        return cls(
            mood_classifier=MoodClassifier(completer, mood_preset(config)),
            caption_generator=CaptionGenerator(completer, caption_preset(config), max_chars=config.caption_max_chars),
            photo_selector=PhotoSelector(asset_store),
            asset_store=asset_store,
            composer=ImageComposer(
                quality=config.jpeg_quality,
                fonts=FontProvider(config.font_path or None, config.bold_font_path or None),
            ),
            credentials=credentials,
            client_factory=client_factory,
            uploader=UploadAdapter(credentials, client_factory, retry_once=config.upload_retry_once),
            cache=cache,
            auto_upload=config.auto_upload,
        )

    async def _load_telemetry(self, ref: ActivityRef) -> ActivityRecord:
        if ref.telemetry is not None:
            return ref.telemetry

        access_token = await self._credentials.get_access_token()
        if not access_token:
            raise ActivityFetchError(ref.activity_id, "no access token available to fetch telemetry")
        return await self._client_factory(access_token).fetch_activity(ref.activity_id)

    async def _load_photo(self, path: str) -> bytes:
        try:
            return await self._assets.load(path)
        except (AssetNotFoundError, httpx.HTTPError, OSError) as e:
            raise CompositionError(f"Photo {path} could not be loaded: {e!s}") from e

    async def generate_meme(
        self,
        activity_ref: ActivityRef | int | str,
        *,
        auto_upload: bool | None = None,
        regenerate: bool = False,
    ) -> MemeRunResult:
        """Generate a meme for one activity.

        Args:
            activity_ref: ActivityRef, or a bare activity id to fetch telemetry for
            auto_upload: Publish to the activity after composing; None uses the configured default
            regenerate: Ignore a cached artifact and overwrite it

        Returns:
            MemeRunResult with the artifact and, when uploading, the upload outcome

        Raises:
            ActivityFetchError: Telemetry could not be fetched
            CaptionGenerationError: Caption call failed
            CompositionError: Photo could not be loaded or rendered
        """
        ref = activity_ref if isinstance(activity_ref, ActivityRef) else ActivityRef(activity_id=activity_ref)

        if not regenerate:
            cached = self.cache.get(ref.activity_id)
            if cached is not None:
                logger.info("Returning cached meme", activity_id=ref.activity_id)
                return MemeRunResult(artifact=cached, from_cache=True)

        sequence = self.cache.begin_run(ref.activity_id)
        logger.info("Generating meme", activity_id=ref.activity_id, sequence=sequence, regenerate=regenerate)

        record = await self._load_telemetry(ref)
        activity = normalize_activity(record)

        mood_task = asyncio.create_task(self._mood.classify(activity))
        try:
            caption = await self._caption.generate(activity)
        except BaseException:
            mood_task.cancel()
            raise
        mood = await mood_task

        photo = await self._photos.select(mood)
        photo_bytes = await self._load_photo(photo.path)

        artifact = await asyncio.to_thread(
            self._composer.compose,
            photo_bytes,
            caption,
            activity,
            ref.activity_id,
            mood=mood,
            photo_path=photo.path,
        )

        if not self.cache.store(ref.activity_id, artifact, sequence):
            logger.info("A newer run already cached a meme for this activity", activity_id=ref.activity_id)

        should_upload = self._auto_upload if auto_upload is None else auto_upload
        upload_outcome = await self._uploader.upload(artifact, ref.activity_id) if should_upload else None

        logger.info(
            "Meme generated",
            activity_id=ref.activity_id,
            mood=mood.value,
            photo=photo.path,
            uploaded=upload_outcome.succeeded if upload_outcome else None,
        )
        return MemeRunResult(
            artifact=artifact,
            upload_outcome=upload_outcome,
            motivation=motivation_for(activity),
        )
