"""Controllers coordinating remote calls with the local application state."""
