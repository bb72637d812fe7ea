from shared.helper.HelperConfig import HelperConfig
from shared.clients.dms.DMSClientInterface import DMSClientInterface

class DMSClientManager:
    """
    Manager class to instantiate the DMS client selected by configuration.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """
        Reads the DMS engine from ENV configuration.

        Returns:
            str: The name of the DMS engine, capitalized (e.g. "Documentmanager").

        Raises:
            ValueError: If no DMS engine is specified in the configuration.
        """
        engine = self.helper_config.get_string_val("DMS_ENGINE")
        if not engine:
            raise ValueError("No DMS engine specified in configuration.")

        #lowercase all and uppcercase first letter for better comparison and display
        engine = engine.strip().lower()
        engine = engine.capitalize()
        return engine

    def _initialize_client(self) -> DMSClientInterface:
        """
        Initializes the DMS client based on the engine specified in the configuration.

        Returns:
            DMSClientInterface: An instance of the DMS client that implements the DMSClientInterface.

        Raises:
            ValueError: If the specified engine is not supported.
        """
        engine = self._get_engine_from_env()
        className = f"DMSClient{engine}"
        # try to import the class from shared.clients.dms.{engine}
        try:
            module = __import__(
                f"shared.clients.dms.{engine.lower()}.{className}",
                fromlist=[className],
            )
            client_class = getattr(module, className)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported DMS engine specified: '{engine}'. Error: {e}")

        client = client_class(helper_config=self.helper_config)
        self.logging.debug(f"Instantiated DMS client for engine: {engine}")
        return client

    def get_client(self) -> DMSClientInterface:
        """
        Returns the instantiated DMS client.

        Returns:
            DMSClientInterface: The DMS client instance.
        """
        return self.client
