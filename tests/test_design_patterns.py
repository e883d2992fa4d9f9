import pytest
from apps.infrastructure.storage import StorageFactory, HttpDocumentStorage, LocalDocumentStorage
from apps.domain.interfaces.document_storage_strategy import DocumentStorageStrategy
from apps.application.facades.document_storage_facade import DocumentStorageFacade


@pytest.mark.django_db
class TestSingletonPattern:
    def test_storage_factory_singleton(self):
        factory1 = StorageFactory()
        factory2 = StorageFactory()
        assert factory1 is factory2

    def test_storage_factory_cache(self):
        factory = StorageFactory()
        storage1 = factory.get_storage('http')
        storage2 = factory.get_storage('http')
        assert storage1 is storage2

    def test_clear_cache(self):
        factory = StorageFactory()
        storage1 = factory.get_storage('local')
        factory.clear_cache()
        assert factory.get_storage('local') is not storage1

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match='Unknown storage backend'):
            StorageFactory().get_storage('ftp')


@pytest.mark.django_db
class TestStrategyPattern:
    def test_strategies_implement_interface(self):
        assert isinstance(HttpDocumentStorage(), DocumentStorageStrategy)
        assert isinstance(LocalDocumentStorage(), DocumentStorageStrategy)

    def test_strategy_selected_by_document_backend(self, document, http_document):
        factory = StorageFactory()
        assert isinstance(factory.get_storage_for_document(document), LocalDocumentStorage)
        assert isinstance(factory.get_storage_for_document(http_document), HttpDocumentStorage)

    def test_strategy_lsp_substitution(self, document, http_document):
        def describe(storage: DocumentStorageStrategy, doc):
            return storage.get_metadata(doc)['name']

        assert describe(LocalDocumentStorage(), document) == 'Contrato.pdf'
        assert describe(HttpDocumentStorage(), http_document) == 'Remote.pdf'

    def test_interface_cannot_be_instantiated(self):
        with pytest.raises(TypeError):
            DocumentStorageStrategy()


@pytest.mark.django_db
class TestFacadePattern:
    def test_facade_uses_strategy(self, document):
        facade = DocumentStorageFacade()
        strategy = facade._get_strategy(document)
        assert isinstance(strategy, DocumentStorageStrategy)

    def test_retry_config_from_organization(self, document, organization):
        organization.storage_config = {'retry_policy': {'max_retries': 5, 'delay': 0.5}}
        organization.save()
        document.refresh_from_db()

        assert DocumentStorageFacade()._retry_config(document) == {'max_retries': 5, 'delay': 0.5}

    def test_retry_config_defaults_to_settings(self, document, settings):
        settings.STORAGE_RETRY_MAX_RETRIES = 4
        assert DocumentStorageFacade()._retry_config(document)['max_retries'] == 4
