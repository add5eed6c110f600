# Models
